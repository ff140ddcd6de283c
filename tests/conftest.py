import pytest

from pagecraft_core.bridge.html import HtmlDocumentBridge

from pages import ARTICLE_HTML, ARTICLE_URL, body_html


@pytest.fixture
def article_bridge():
    return HtmlDocumentBridge(ARTICLE_HTML, url=ARTICLE_URL)


@pytest.fixture
def make_bridge():
    def _make(inner: str, url: str = "https://example.com/page") -> HtmlDocumentBridge:
        return HtmlDocumentBridge(body_html(inner), url=url)
    return _make
