"""
Pagecraft exceptions
"""


class PagecraftError(Exception):
    """Base exception for pagecraft"""
    pass


class BridgeError(PagecraftError):
    """The document bridge returned something it should not have"""
    pass


class DocumentGone(BridgeError):
    """The page navigated, reloaded or closed while a script was running"""
    pass


class NodeDetached(PagecraftError):
    """Node is not attached to the current document"""
    pass


class RuleValidationError(PagecraftError, ValueError):
    """Transformation rule has malformed parameters"""
    pass


class TargetNotFound(PagecraftError):
    """Destination locator of a move rule does not resolve"""
    pass


class StorageUnavailable(PagecraftError):
    """Template persistence layer is not accessible"""
    pass


class TemplateNotFound(PagecraftError, KeyError):
    """No template with the requested id"""

    def __str__(self):
        return Exception.__str__(self)


class UnknownPreset(PagecraftError, KeyError):
    """No restructuring preset with the requested name"""

    def __str__(self):
        return Exception.__str__(self)


class AdviceUnavailable(PagecraftError):
    """The Ollama endpoint could not produce restructuring advice"""
    pass
