"""
Browser bridge - live page access through the in-page agent.

All calls go through page.evaluate; Playwright errors raised because the
page navigated or closed mid-call are translated to DocumentGone.
"""

from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from ..diagnostics import get_logger
from ..exceptions import BridgeError, DocumentGone, NodeDetached
from .agent_js import (
    DOCUMENT_INFO_JS,
    LOCATOR_OF_JS,
    MUTATE_JS,
    POINTER_LISTENERS_JS,
    RESOLVE_JS,
    SNAPSHOT_JS,
)
from .base import PageBridge

logger = get_logger(__name__)

POINTER_BINDING = "__pagecraftPointerEvent"

# Substrings of Playwright error messages that mean the document is gone.
DOCUMENT_GONE_MARKERS = (
    "execution context was destroyed",
    "target closed",
    "target page, context or browser has been closed",
    "has been closed",
    "frame was detached",
    "most likely because of a navigation",
    "cannot find context with specified id",
    "jshandle is disposed",
    "navigating frame was detached",
)

PointerCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


def is_document_gone_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in DOCUMENT_GONE_MARKERS)


class PlaywrightBridge(PageBridge):
    """
    Bridge over a Playwright async Page.

    Args:
        page: playwright.async_api.Page
        timeout_ms: timeout used for reload
    """

    def __init__(self, page, timeout_ms: int = 30000):
        self.page = page
        self.timeout_ms = timeout_ms

    async def _evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            if arg is None:
                return await self.page.evaluate(script)
            return await self.page.evaluate(script, arg)
        except PlaywrightError as e:
            if is_document_gone_error(e):
                logger.warning(f"Document gone during evaluate: {e}")
                raise DocumentGone(str(e)) from e
            raise BridgeError(f"Page script failed: {e}") from e

    async def document_info(self) -> Dict[str, str]:
        info = await self._evaluate(DOCUMENT_INFO_JS)
        if not isinstance(info, dict):
            raise BridgeError(f"Unexpected document info: {info!r}")
        return {"url": str(info.get("url") or ""), "title": str(info.get("title") or "")}

    async def compute_locator(self, node: Any) -> str:
        """Locator for an ElementHandle."""
        try:
            locator = await node.evaluate(LOCATOR_OF_JS)
        except PlaywrightError as e:
            if is_document_gone_error(e):
                raise DocumentGone(str(e)) from e
            raise NodeDetached(str(e)) from e
        if not locator:
            raise NodeDetached("Element is not attached to the current document")
        return locator

    async def resolve(self, locator: str) -> Optional[Any]:
        """ElementHandle for a locator, or None."""
        try:
            handle = await self.page.evaluate_handle(RESOLVE_JS, locator)
        except PlaywrightError as e:
            if is_document_gone_error(e):
                raise DocumentGone(str(e)) from e
            raise BridgeError(f"Locator resolution failed: {e}") from e
        element = handle.as_element()
        if element is None:
            await handle.dispose()
        return element

    async def snapshot(self) -> Dict[str, Any]:
        snap = await self._evaluate(SNAPSHOT_JS)
        if not isinstance(snap, dict) or not isinstance(snap.get("root"), dict):
            raise BridgeError("Snapshot script returned no document root")
        return snap

    async def mutate(self, rule: Dict[str, Any]) -> Dict[str, Any]:
        result = await self._evaluate(MUTATE_JS, rule)
        if not isinstance(result, dict) or "status" not in result:
            raise BridgeError(f"Unexpected mutation result: {result!r}")
        return result

    async def reload(self) -> None:
        try:
            await self.page.reload(wait_until="domcontentloaded", timeout=self.timeout_ms)
        except PlaywrightError as e:
            if is_document_gone_error(e):
                raise DocumentGone(str(e)) from e
            raise BridgeError(f"Reload failed: {e}") from e

    async def install_pointer_listeners(self, callback: PointerCallback) -> bool:
        """
        Report pointer gestures to `callback` as {kind, locator, tag}.

        kind is "move" (hover target changed) or "down". Returns False when
        listeners were already installed in this document.
        """
        try:
            await self.page.expose_function(POINTER_BINDING, callback)
        except PlaywrightError as e:
            # Binding survives navigation; registering twice is an error we can ignore
            if "has been already registered" not in str(e):
                raise BridgeError(f"Cannot expose pointer binding: {e}") from e
        return bool(await self._evaluate(POINTER_LISTENERS_JS, POINTER_BINDING))


@asynccontextmanager
async def open_page(url: str, headless: bool = True, timeout_ms: int = 30000):
    """Launch chromium, open `url` and yield a PlaywrightBridge for it."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            yield PlaywrightBridge(page, timeout_ms=timeout_ms)
        finally:
            await browser.close()
