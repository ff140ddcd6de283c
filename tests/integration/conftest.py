"""
Pytest configuration for integration tests

These run the in-page agent in a real Chromium. They are skipped when
Playwright has no browser installed (`playwright install chromium`).
"""

import os

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from pages import ARTICLE_HTML


def pytest_configure(config):
    """Configure pytest"""
    os.environ['PAGECRAFT_HEADLESS'] = 'true'


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest_asyncio.fixture
async def site():
    """Serve the sample article over HTTP so reloads get the original back."""
    async def article(request):
        return web.Response(text=ARTICLE_HTML, content_type="text/html")

    app = web.Application()
    app.router.add_get("/article", article)
    async with TestServer(app) as server:
        yield server


@pytest_asyncio.fixture
async def browser_page(site):
    """Provide a browser page showing the sample article"""
    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=True)
        except PlaywrightError as e:
            pytest.skip(f"Chromium not available: {e}")
        page = await browser.new_page()
        await page.goto(str(site.make_url("/article")))
        yield page
        await browser.close()
