"""
Headless browser session for category scraping.

One browser, one context, one page, reused for every category.
"""

from typing import Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Route,
    async_playwright,
)

from config.settings import ScraperConfig
from src.exceptions import BrowserLaunchError
from src.extractors.dom import PlaywrightPage
from src.utils import console


class BrowserSession:
    """Launches Chromium and exposes a single configured page."""

    def __init__(self, scraper_config: Optional[ScraperConfig] = None):
        self.config = scraper_config or ScraperConfig()
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[PlaywrightPage] = None

    async def __aenter__(self) -> PlaywrightPage:
        """Async context manager entry."""
        try:
            return await self.start()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self) -> PlaywrightPage:
        """Start the browser and open the page used for scraping."""
        console.print("[bold blue]Starting chromium browser...[/bold blue]")

        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=self.config.headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
        except Exception as e:
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

        self.context = await self.browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            user_agent=self.config.user_agent,
        )
        page: Page = await self.context.new_page()
        await page.route("**/*", self._handle_route)

        self.page = PlaywrightPage(page)
        console.print("[bold green]Browser started successfully[/bold green]")
        return self.page

    async def _handle_route(self, route: Route) -> None:
        """Drop images, fonts and media; let everything else through."""
        if route.request.resource_type in self.config.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def close(self) -> None:
        """Close the browser."""
        if self.context:
            await self.context.close()
            self.context = None
        if self.browser:
            await self.browser.close()
            self.browser = None
            console.print("[bold blue]Browser closed[/bold blue]")
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None
