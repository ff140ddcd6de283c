import pytest

from pagecraft_core.error_handler import (
    create_error_response,
    format_error_for_logging,
    format_user_friendly_error,
    get_error_category,
    should_retry_error,
)
from pagecraft_core.exceptions import (
    AdviceUnavailable,
    BridgeError,
    DocumentGone,
    NodeDetached,
    StorageUnavailable,
    TemplateNotFound,
    UnknownPreset,
)


@pytest.mark.parametrize("error,category,can_retry", [
    (DocumentGone("navigated"), "document", True),
    (NodeDetached("gone"), "targeting", False),
    (StorageUnavailable("read-only"), "storage", True),
    (TemplateNotFound("abc"), "storage", False),
    (UnknownPreset("sparkle"), "rule", False),
    (AdviceUnavailable("refused"), "llm", True),
    (BridgeError("SyntaxError"), "document", True),
])
def test_known_exceptions(error, category, can_retry):
    assert get_error_category(error) == category
    assert should_retry_error(error) is can_retry
    assert format_user_friendly_error(error)["technical"] == str(error)


def test_document_gone_wins_over_bridge_error():
    # DocumentGone subclasses BridgeError
    assert format_user_friendly_error(DocumentGone("x"))["severity"] == "warning"


def test_message_patterns():
    friendly = format_user_friendly_error(RuntimeError("Executable doesn't exist at /ms-playwright/chromium"))
    assert "playwright install" in friendly["suggestion"]
    assert friendly["can_retry"] is False
    assert get_error_category(TimeoutError("Timeout 30000ms exceeded")) == "network"
    assert get_error_category(RuntimeError("Playwright crashed")) == "browser"


def test_unknown_error_fallback():
    friendly = format_user_friendly_error(ValueError("weird"))
    assert friendly["message"] == "An unexpected error occurred"
    assert get_error_category(ValueError("weird")) == "unknown"


def test_logging_format_has_context():
    text = format_error_for_logging(TemplateNotFound("abc"), context="apply-template")
    lines = text.splitlines()
    assert lines[0] == "📍 Context: apply-template"
    assert lines[1].startswith("❌ Template not found")


def test_error_response():
    response = create_error_response(StorageUnavailable("disk full"), context="save_template")
    assert response["success"] is False
    assert response["error"]["category"] == "storage"
    assert response["error"]["context"] == "save_template"
    assert "stacktrace" not in response["error"]
