"""
User-Friendly Error Handler.

Converts pagecraft and browser errors into messages with actionable
suggestions for the panel UI and the CLI.
"""

from typing import Dict, Optional
import logging

from .exceptions import (
    AdviceUnavailable,
    BridgeError,
    DocumentGone,
    NodeDetached,
    RuleValidationError,
    StorageUnavailable,
    TargetNotFound,
    TemplateNotFound,
    UnknownPreset,
)

logger = logging.getLogger(__name__)


# Known exception types, checked before message patterns (first match wins)
EXCEPTION_MAPPINGS = [
    (DocumentGone, "document", {
        "message": "The page changed while customizations were being applied",
        "suggestion": "Wait for the page to finish loading, then apply the customization again",
        "severity": "warning",
        "can_retry": True
    }),
    (NodeDetached, "targeting", {
        "message": "The selected element is no longer part of the page",
        "suggestion": "Select the element again",
        "severity": "warning",
        "can_retry": False
    }),
    (RuleValidationError, "rule", {
        "message": "The customization has invalid parameters",
        "suggestion": "Check the rule type, locator and parameters",
        "severity": "error",
        "can_retry": False
    }),
    (TargetNotFound, "rule", {
        "message": "The destination element for the move was not found",
        "suggestion": "The page structure changed. Pick the destination again",
        "severity": "warning",
        "can_retry": False
    }),
    (StorageUnavailable, "storage", {
        "message": "Templates could not be read or saved",
        "suggestion": "Check that the workspace directory is writable (PAGECRAFT_WORKSPACE)",
        "severity": "error",
        "can_retry": True
    }),
    (TemplateNotFound, "storage", {
        "message": "Template not found",
        "suggestion": "List templates with: pagecraft templates list",
        "severity": "error",
        "can_retry": False
    }),
    (UnknownPreset, "rule", {
        "message": "Unknown restructuring preset",
        "suggestion": "Use one of: simplify, clean, focus, readability, mobile",
        "severity": "error",
        "can_retry": False
    }),
    (AdviceUnavailable, "llm", {
        "message": "Restructuring advice is not available",
        "suggestion": "Check that Ollama is running: ollama serve (PAGECRAFT_OLLAMA_HOST)",
        "severity": "warning",
        "can_retry": True
    }),
    (BridgeError, "document", {
        "message": "The page rejected a customization script",
        "suggestion": "Reload the page and try again",
        "severity": "error",
        "can_retry": True
    }),
]


# Error mappings: pattern -> user-friendly info
ERROR_MAPPINGS = {
    # Network/timeout errors
    "timeout": {
        "message": "The page took too long to respond",
        "suggestion": "Check your connection or whether the page is reachable, then try again",
        "severity": "warning",
        "can_retry": True
    },
    "connection refused": {
        "message": "Could not connect to the page",
        "suggestion": "Check that the URL is correct and the site is up",
        "severity": "error",
        "can_retry": True
    },

    # Browser/page errors
    "target closed": {
        "message": "The browser was closed during the operation",
        "suggestion": "Run the command again",
        "severity": "error",
        "can_retry": True
    },
    "executable doesn't exist": {
        "message": "No browser is installed for Playwright",
        "suggestion": "Install one with: playwright install chromium",
        "severity": "critical",
        "can_retry": False
    },
    "navigation failed": {
        "message": "The page could not be loaded",
        "suggestion": "Check that the URL is correct and the site is up",
        "severity": "error",
        "can_retry": True
    },
    "net::err_": {
        "message": "The page could not be loaded",
        "suggestion": "Check that the URL is correct and the site is up",
        "severity": "error",
        "can_retry": True
    },

    # Files
    "no such file": {
        "message": "File not found",
        "suggestion": "Check the path to the HTML or template file",
        "severity": "error",
        "can_retry": False
    },
    "permission denied": {
        "message": "Not allowed to perform the operation",
        "suggestion": "Check file permissions",
        "severity": "error",
        "can_retry": False
    },

    # LLM errors
    "ollama": {
        "message": "Could not talk to Ollama",
        "suggestion": "Check that Ollama is running: ollama serve",
        "severity": "critical",
        "can_retry": False
    },
}


def format_user_friendly_error(
    error: Exception,
    context: str = "general",
    technical_details: Optional[str] = None
) -> Dict:
    """
    Convert technical error to user-friendly message.

    Args:
        error: The exception that occurred
        context: Where the error occurred (e.g., "apply_preset", "save_template")
        technical_details: Additional technical information

    Returns:
        Dictionary with user-friendly error information:
        {
            "message": str,          # User-friendly message
            "suggestion": str,       # Actionable suggestion
            "technical": str,        # Technical details
            "severity": str,         # "critical", "error", "warning"
            "can_retry": bool        # Whether retry might help
        }
    """
    error_str = str(error)

    for exc_type, _category, friendly_error in EXCEPTION_MAPPINGS:
        if isinstance(error, exc_type):
            result = friendly_error.copy()
            result["technical"] = technical_details or error_str
            return result

    for pattern, friendly_error in ERROR_MAPPINGS.items():
        if pattern.lower() in error_str.lower():
            result = friendly_error.copy()
            result["technical"] = technical_details or error_str
            logger.debug(f"Mapped error to user-friendly: {result['message']}")
            return result

    # Default fallback for unknown errors
    return {
        "message": "An unexpected error occurred",
        "suggestion": "Check the technical details or run again with PAGECRAFT_DEBUG=true",
        "technical": technical_details or error_str,
        "severity": "error",
        "can_retry": True
    }


def get_error_category(error: Exception) -> str:
    """
    Categorize error type.

    Returns:
        Category name: "document", "targeting", "rule", "storage", "llm",
        "network", "browser" or "unknown"
    """
    for exc_type, category, _friendly in EXCEPTION_MAPPINGS:
        if isinstance(error, exc_type):
            return category

    error_str = str(error).lower()
    if any(k in error_str for k in ["timeout", "connection", "network"]):
        return "network"
    elif any(k in error_str for k in ["browser", "target", "navigation", "playwright"]):
        return "browser"
    elif any(k in error_str for k in ["llm", "model", "ollama"]):
        return "llm"
    else:
        return "unknown"


def should_retry_error(error: Exception) -> bool:
    friendly = format_user_friendly_error(error)
    return friendly.get("can_retry", False)


def format_error_for_logging(error: Exception, context: str = "") -> str:
    friendly = format_user_friendly_error(error, context)

    lines = [
        f"❌ {friendly['message']}",
        f"💡 {friendly['suggestion']}",
        f"🔧 Technical: {friendly['technical']}"
    ]

    if context:
        lines.insert(0, f"📍 Context: {context}")

    return "\n".join(lines)


def create_error_response(
    error: Exception,
    context: str = "",
    include_stacktrace: bool = False
) -> Dict:
    """
    Create standardized error response for the UI and CLI.

    Args:
        error: The exception
        context: Where the error occurred
        include_stacktrace: Whether to include full stacktrace

    Returns:
        Standardized error response dictionary
    """
    import traceback

    friendly = format_user_friendly_error(error, context)

    response = {
        "success": False,
        "error": {
            "message": friendly["message"],
            "suggestion": friendly["suggestion"],
            "severity": friendly["severity"],
            "can_retry": friendly["can_retry"],
            "category": get_error_category(error),
        }
    }
    if context:
        response["error"]["context"] = context

    if include_stacktrace:
        response["error"]["stacktrace"] = traceback.format_exc()
        response["error"]["technical_details"] = friendly["technical"]

    return response
