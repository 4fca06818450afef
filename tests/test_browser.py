"""
Tests for the browser session and the Playwright page binding (no real browser).
"""
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock, patch

from config.settings import ScraperConfig
from src.exceptions import BrowserLaunchError
from src.extractors.browser import BrowserSession
from src.extractors.dom import EXTRACT_FIELDS_JS, PlaywrightPage


def _route(resource_type: str) -> MagicMock:
    route = MagicMock()
    route.request.resource_type = resource_type
    route.abort = AsyncMock()
    route.continue_ = AsyncMock()
    return route


class TestRequestInterception(IsolatedAsyncioTestCase):
    async def test_blocks_images_fonts_and_media(self):
        session = BrowserSession(ScraperConfig())
        for resource_type in ("image", "font", "media"):
            route = _route(resource_type)
            await session._handle_route(route)
            route.abort.assert_awaited_once()
            route.continue_.assert_not_awaited()

    async def test_lets_documents_and_scripts_through(self):
        session = BrowserSession(ScraperConfig())
        for resource_type in ("document", "script", "xhr", "stylesheet"):
            route = _route(resource_type)
            await session._handle_route(route)
            route.continue_.assert_awaited_once()
            route.abort.assert_not_awaited()


class TestBrowserLaunch(IsolatedAsyncioTestCase):
    async def test_launch_failure_raises_and_cleans_up(self):
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock(side_effect=RuntimeError("Executable doesn't exist"))
        playwright.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright)

        with patch("src.extractors.browser.async_playwright", return_value=starter):
            with self.assertRaises(BrowserLaunchError):
                async with BrowserSession(ScraperConfig()):
                    pass

        playwright.stop.assert_awaited_once()

    async def test_context_uses_viewport_and_user_agent(self):
        config = ScraperConfig()
        page = MagicMock()
        page.route = AsyncMock()
        context = MagicMock()
        context.new_page = AsyncMock(return_value=page)
        context.close = AsyncMock()
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)
        browser.close = AsyncMock()
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock(return_value=browser)
        playwright.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright)

        with patch("src.extractors.browser.async_playwright", return_value=starter):
            async with BrowserSession(config) as wrapped:
                self.assertIsInstance(wrapped, PlaywrightPage)

        browser.new_context.assert_awaited_once_with(
            viewport={"width": 1280, "height": 800},
            user_agent=config.user_agent,
        )
        page.route.assert_awaited_once()
        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()


class TestPlaywrightPage(IsolatedAsyncioTestCase):
    async def test_goto_waits_for_dom_content_loaded(self):
        page = MagicMock()
        page.goto = AsyncMock()

        await PlaywrightPage(page).goto("https://example.test/cat", 5000)

        page.goto.assert_awaited_once_with(
            "https://example.test/cat", wait_until="domcontentloaded", timeout=5000
        )

    async def test_extract_fields_evaluates_on_element(self):
        element = MagicMock()
        element.evaluate = AsyncMock(return_value={"title": "KIVIK"})
        probes = ScraperConfig().extraction_probes()

        result = await PlaywrightPage(MagicMock()).extract_fields(element, probes)

        self.assertEqual(result, {"title": "KIVIK"})
        element.evaluate.assert_awaited_once_with(EXTRACT_FIELDS_JS, probes)

    async def test_first_heading_missing(self):
        page = MagicMock()
        page.query_selector = AsyncMock(return_value=None)

        self.assertIsNone(await PlaywrightPage(page).first_heading())
