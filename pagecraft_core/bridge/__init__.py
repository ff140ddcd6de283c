"""
Document bridges - the single, fallible channel into a customized document.
"""

from .base import PageBridge
from .html import HtmlDocumentBridge, compute_locator, resolve_locator

__all__ = [
    'PageBridge',
    'HtmlDocumentBridge',
    'compute_locator',
    'resolve_locator',
]
