"""
Document bridge - the only channel into the customized document.

Every method is one script turn against the foreign document: it either
completes or raises. `DocumentGone` means the page was replaced (navigation,
reload, closed tab) while the call was in flight; callers treat it as
terminal for whatever they were doing.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class PageBridge(ABC):
    """
    Typed request/response boundary to a document.

    Implementations:
    - PlaywrightBridge: live page, in-page JavaScript agent via page.evaluate
    - HtmlDocumentBridge: offline BeautifulSoup document (saved pages, tests)
    """

    @abstractmethod
    async def document_info(self) -> Dict[str, str]:
        """Return {"url": ..., "title": ...} of the current document."""

    @abstractmethod
    async def compute_locator(self, node: Any) -> str:
        """Locator of a backend node handle. Raises NodeDetached."""

    @abstractmethod
    async def resolve(self, locator: str) -> Optional[Any]:
        """Backend node handle for a locator, or None when it no longer resolves."""

    @abstractmethod
    async def snapshot(self) -> Dict[str, Any]:
        """
        JSON read model of the whole document::

            {"url": str, "title": str, "root": {locator, tag, attrs, text,
             visible, style: {...}, children: [...]}}
        """

    @abstractmethod
    async def mutate(self, rule: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve and apply one serialized rule in a single turn.

        Returns {"status": "applied" | "not_found" | "target_not_found" | "invalid_move"}.
        """

    @abstractmethod
    async def reload(self) -> None:
        """Reload the document, discarding every mutation."""
