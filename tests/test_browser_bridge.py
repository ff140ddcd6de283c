import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from pagecraft_core.bridge.agent_js import MUTATE_JS, POINTER_LISTENERS_JS, SNAPSHOT_JS
from pagecraft_core.bridge.browser import POINTER_BINDING, PlaywrightBridge, is_document_gone_error
from pagecraft_core.exceptions import BridgeError, DocumentGone, NodeDetached
from pagecraft_core.transform import TransformationEngine, make_rule


class FakeHandle:
    def __init__(self, locator=None, element=True):
        self._locator = locator
        self._element = element
        self.disposed = False

    async def evaluate(self, script, *args):
        return self._locator

    def as_element(self):
        return self if self._element else None

    async def dispose(self):
        self.disposed = True


class FakePage:
    def __init__(self, results=None, error=None):
        self.results = results or {}
        self.error = error
        self.calls = []
        self.exposed = {}
        self.reloaded = False

    async def evaluate(self, script, *args):
        self.calls.append((script, args))
        if self.error is not None:
            raise self.error
        if script is MUTATE_JS:
            return self.results.get("mutate", {"status": "applied"})
        if script is SNAPSHOT_JS:
            return self.results.get("snapshot")
        if script is POINTER_LISTENERS_JS:
            return self.results.get("pointer", True)
        if "document.title" in script:
            return {"url": "https://example.com/", "title": "Example"}
        return None

    async def evaluate_handle(self, script, *args):
        return self.results.get("handle", FakeHandle(element=False))

    async def expose_function(self, name, callback):
        if name in self.exposed:
            raise PlaywrightError(f'Function "{name}" has been already registered')
        self.exposed[name] = callback

    async def reload(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.reloaded = True


def run(coro):
    return asyncio.run(coro)


def test_document_gone_markers():
    assert is_document_gone_error(Exception("Execution context was destroyed, most likely because of a navigation"))
    assert is_document_gone_error(Exception("Target page, context or browser has been closed"))
    assert not is_document_gone_error(Exception("SyntaxError: Unexpected token"))


def test_document_info():
    assert run(PlaywrightBridge(FakePage()).document_info()) == {"url": "https://example.com/", "title": "Example"}


def test_mutate_passes_serialized_rule():
    page = FakePage()
    rule = make_rule("style", "/html[1]/body[1]", styles={"color": "red"})
    assert run(PlaywrightBridge(page).mutate(rule.to_dict())) == {"status": "applied"}
    script, args = page.calls[-1]
    assert script is MUTATE_JS
    assert args[0]["parameters"] == {"styles": {"color": "red"}}


def test_navigation_during_evaluate_is_document_gone():
    page = FakePage(error=PlaywrightError("Execution context was destroyed, most likely because of a navigation"))
    with pytest.raises(DocumentGone):
        run(PlaywrightBridge(page).snapshot())


def test_other_script_errors_are_bridge_errors():
    page = FakePage(error=PlaywrightError("ReferenceError: foo is not defined"))
    with pytest.raises(BridgeError) as exc:
        run(PlaywrightBridge(page).snapshot())
    assert not isinstance(exc.value, DocumentGone)


def test_malformed_results_are_bridge_errors():
    with pytest.raises(BridgeError):
        run(PlaywrightBridge(FakePage(results={"snapshot": None})).snapshot())
    with pytest.raises(BridgeError):
        run(PlaywrightBridge(FakePage(results={"mutate": "ok"})).mutate({}))


def test_batch_abandoned_when_page_navigates():
    page = FakePage(error=PlaywrightError("Target closed"))
    report = run(TransformationEngine(PlaywrightBridge(page)).apply_all([
        make_rule("hide", "/html[1]/body[1]/div[1]", order_index=0),
        make_rule("hide", "/html[1]/body[1]/div[2]", order_index=1),
    ]))
    assert report.abandoned
    assert report.skipped == 2


def test_compute_locator_and_detached_handles():
    bridge = PlaywrightBridge(FakePage())
    assert run(bridge.compute_locator(FakeHandle("/html[1]/body[1]"))) == "/html[1]/body[1]"
    with pytest.raises(NodeDetached):
        run(bridge.compute_locator(FakeHandle(None)))


def test_resolve_returns_element_or_none():
    element = FakeHandle("/html[1]/body[1]")
    assert run(PlaywrightBridge(FakePage(results={"handle": element})).resolve("/html[1]/body[1]")) is element
    missing = FakeHandle(element=False)
    assert run(PlaywrightBridge(FakePage(results={"handle": missing})).resolve("/html[1]/body[9]")) is None
    assert missing.disposed


def test_reload():
    page = FakePage()
    run(PlaywrightBridge(page).reload())
    assert page.reloaded
    with pytest.raises(DocumentGone):
        run(PlaywrightBridge(FakePage(error=PlaywrightError("Target closed"))).reload())


def test_pointer_listeners_install_once_per_binding():
    page = FakePage()
    bridge = PlaywrightBridge(page)
    events = []
    assert run(bridge.install_pointer_listeners(events.append)) is True
    assert POINTER_BINDING in page.exposed
    page.results["pointer"] = False
    assert run(bridge.install_pointer_listeners(events.append)) is False
