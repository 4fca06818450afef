"""
Scrapes one category listing page, retrying the whole attempt on failure.

Attempt flow: navigate -> wait for content -> probe selectors -> extract.
Any failure goes back to navigation until the retry budget is spent, after
which the category yields an empty list.
"""

from enum import Enum
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from rich.markup import escape

from config.settings import ScraperConfig
from src.exceptions import NoProductSelectorError, RedirectedError
from src.extractors.dom import CategoryPage
from src.extractors.product_extractor import ProductExtractor, RawFurnitureData
from src.extractors.selector_prober import SelectorProber
from src.utils import Settler, console


class ScrapeState(str, Enum):
    """Where an attempt currently is."""

    NAVIGATING = "navigating"
    WAITING_FOR_CONTENT = "waiting_for_content"
    PROBING_SELECTORS = "probing_selectors"
    EXTRACTING_PRODUCTS = "extracting_products"
    RETRYING = "retrying"
    DONE = "done"
    FAILED = "failed"


class CategoryScraper:
    """Runs the navigate/probe/extract sequence for a category with retries."""

    def __init__(
        self,
        scraper_config: Optional[ScraperConfig] = None,
        settler: Optional[Settler] = None,
        prober: Optional[SelectorProber] = None,
        extractor: Optional[ProductExtractor] = None,
    ):
        self.config = scraper_config or ScraperConfig()
        self.settler = settler or Settler()
        self.prober = prober or SelectorProber(
            self.config.product_selectors, self.config.sample_length
        )
        self.extractor = extractor or ProductExtractor(self.config)
        self.state = ScrapeState.NAVIGATING
        self.attempts = 0

    async def scrape(
        self,
        page: CategoryPage,
        category_name: str,
        category_url: str,
        limit: Optional[int] = None,
    ) -> list[RawFurnitureData]:
        """
        Scrape up to `limit` products from a category page.

        Args:
            page: Browser page to drive
            category_name: Display name, assigned to every product
            category_url: Listing URL
            limit: Max products (defaults to items_per_category)

        Returns:
            Valid products in page order; empty if every attempt failed
        """
        limit = self.config.items_per_category if limit is None else limit
        tag = escape(f"[{category_name}]")
        self.attempts = 0

        while self.attempts < self.config.max_retries:
            try:
                items = await self._attempt(page, category_name, category_url, limit)
                self.state = ScrapeState.DONE
                console.print(
                    f"[green]{tag} Successfully scraped {len(items)} items[/green]"
                )
                return items
            except Exception as e:
                self.attempts += 1
                console.print(
                    f"[red]Error scraping {escape(category_name)} "
                    f"(attempt {self.attempts}/{self.config.max_retries}): "
                    f"{escape(str(e))}[/red]"
                )
                if self.attempts >= self.config.max_retries:
                    break
                self.state = ScrapeState.RETRYING
                await self.settler.before_retry()

        self.state = ScrapeState.FAILED
        console.print(
            f"[bold red]Failed to scrape {escape(category_name)} "
            f"after {self.config.max_retries} attempts[/bold red]"
        )
        return []

    async def _attempt(
        self, page: CategoryPage, category_name: str, category_url: str, limit: int
    ) -> list[RawFurnitureData]:
        """One pass over the category page. Raises on any failure."""
        tag = escape(f"[{category_name}]")

        self.state = ScrapeState.NAVIGATING
        console.print(f"[cyan]{tag} Navigating to page...[/cyan]")
        await page.set_user_agent(self.config.user_agent)
        await page.goto(category_url, self.config.navigation_timeout_ms)

        current_url = await page.current_url()
        console.print(f"[dim]{tag} Current URL: {escape(current_url)}[/dim]")
        if self.config.redirect_marker in current_url:
            raise RedirectedError(category_url, current_url)

        self.state = ScrapeState.WAITING_FOR_CONTENT
        console.print(f"[dim]{tag} Waiting for main content...[/dim]")
        try:
            await page.wait_for_selector(
                self.config.content_selector, self.config.content_timeout_ms
            )
        except PlaywrightTimeoutError:
            await self._log_page_diagnostics(page, category_name)
            raise
        await self.settler.after_content()

        self.state = ScrapeState.PROBING_SELECTORS
        working = await self.prober.find_working_selector(page, category_name)
        if working is None:
            preview = await page.body_preview()
            console.print(
                f"{tag} No product elements found. Page preview: {preview}",
                style="yellow",
                markup=False,
            )
            raise NoProductSelectorError("No product selectors found on the page")

        console.print(
            f"[cyan]{tag} Using selector: {escape(working.selector)} "
            f"({working.count} elements)[/cyan]"
        )
        await page.wait_for_selector(working.selector, self.config.selector_timeout_ms)
        console.print(f"[dim]{tag} Waiting for dynamic content...[/dim]")
        await self.settler.after_selector()

        self.state = ScrapeState.EXTRACTING_PRODUCTS
        elements = await page.query_all(working.selector)
        console.print(f"[dim]{tag} Found {len(elements)} products[/dim]")
        return await self.extractor.extract_all(page, elements[:limit], category_name)

    async def _log_page_diagnostics(self, page: CategoryPage, category_name: str) -> None:
        """Print title, first heading and URL to help tell a block from a redirect."""
        tag = escape(f"[{category_name}]")
        try:
            title = await page.title()
            heading = await page.first_heading() or "No H1 found"
            current_url = await page.current_url()
        except Exception as e:
            console.print(f"[dim]{tag} Could not collect page info: {escape(str(e))}[/dim]")
            return
        console.print(
            f"[yellow]{tag} Page info - Title: \"{escape(title)}\", "
            f"H1: \"{escape(heading.strip())}\"[/yellow]"
        )
        console.print(f"[yellow]{tag} Current URL: {escape(current_url)}[/yellow]")
