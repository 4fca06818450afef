"""
Main ETL pipeline orchestrating extraction, transformation, and loading.
"""

import random
from datetime import datetime
from typing import Callable, Optional

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config.settings import CategoryConfig, PipelineConfig, config
from src.exceptions import BrowserLaunchError, CatalogError
from src.extractors.browser import BrowserSession
from src.extractors.category_scraper import CategoryScraper
from src.extractors.product_extractor import RawFurnitureData
from src.loaders.catalog_store import CatalogStore, CatalogWriteResult
from src.transformers.product_transformer import FurnitureItem, FurnitureTransformer
from src.utils import Settler, console


class FurniturePipeline:
    """
    ETL Pipeline for building the furniture catalog.

    Orchestrates:
    - Extract: Scrape product cards from each category listing
    - Transform: Convert prices and build descriptions
    - Load: Merge into the active catalog file
    """

    def __init__(
        self,
        pipeline_config: Optional[PipelineConfig] = None,
        session_factory: Optional[Callable[..., BrowserSession]] = None,
        scraper: Optional[CategoryScraper] = None,
        store: Optional[CatalogStore] = None,
        settler: Optional[Settler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = pipeline_config or config
        self.session_factory = session_factory or BrowserSession
        self.settler = settler or Settler(self.config.delays)
        self.scraper = scraper or CategoryScraper(self.config.scraper, self.settler)
        self.transformer = FurnitureTransformer(
            self.config.scraper.source, self.config.currency
        )
        self.store = store or CatalogStore(self.config.catalog)
        self.rng = rng or random.Random()

        self.raw_products: list[RawFurnitureData] = []
        self.items: list[FurnitureItem] = []
        self.category_counts: dict[str, int] = {}

    def choose_page(self, category: CategoryConfig) -> int:
        """Fixed page, or a uniformly random one within the known page range."""
        if not self.config.scraper.randomize_page:
            return min(max(self.config.scraper.fixed_page, 1), max(category.page_count, 1))
        return self.rng.randint(1, max(category.page_count, 1))

    async def run(self) -> dict:
        """
        Run the complete ETL pipeline.

        Returns:
            Summary dict with pipeline results
        """
        start_time = datetime.now()
        self._print_header()

        try:
            # EXTRACT
            console.print("\n[bold blue]═══ EXTRACT PHASE ═══[/bold blue]")
            self.raw_products = await self._extract()

            # TRANSFORM
            console.print("\n[bold blue]═══ TRANSFORM PHASE ═══[/bold blue]")
            self.items = self.transformer.transform_batch(self.raw_products)
            console.print(f"[green]Transformed {len(self.items)} products[/green]")
            self._count_by_category()

            # LOAD
            console.print("\n[bold blue]═══ LOAD PHASE ═══[/bold blue]")
            write_result = None
            if self.items:
                write_result = await self.store.persist(self.items)
            else:
                console.print("[yellow]No items scraped; catalog left unchanged[/yellow]")

        except BrowserLaunchError as e:
            console.print(f"[bold red]Pipeline failed: {escape(str(e))}[/bold red]")
            return {"success": False, "fatal": True, "error": str(e)}
        except CatalogError as e:
            console.print(f"[bold red]Pipeline failed: {escape(str(e))}[/bold red]")
            self._print_summary((datetime.now() - start_time).total_seconds(), None)
            return {
                "success": False,
                "fatal": False,
                "error": str(e),
                "category_counts": dict(self.category_counts),
            }

        elapsed = (datetime.now() - start_time).total_seconds()
        self._print_summary(elapsed, write_result)

        result = {
            "success": True,
            "products_extracted": len(self.raw_products),
            "products_saved": len(self.items),
            "category_counts": dict(self.category_counts),
            "elapsed_seconds": elapsed,
        }
        if write_result:
            result.update(
                catalog_number=write_result.number,
                catalog_path=str(write_result.path),
                catalog_total=write_result.total_items,
                catalog_complete=write_result.is_complete,
            )
        return result

    async def _extract(self) -> list[RawFurnitureData]:
        """Extract phase: scrape every configured category, in order."""
        products: list[RawFurnitureData] = []
        scraper_config = self.config.scraper

        async with self.session_factory(scraper_config) as page:
            for position, category in enumerate(scraper_config.categories):
                page_number = self.choose_page(category)
                url = category.page_url(page_number)
                console.print(
                    f"\n[bold magenta]Scraping {escape(category.name)} furniture "
                    f"(page {page_number}/{category.page_count})...[/bold magenta]"
                )

                items = await self.scraper.scrape(
                    page, category.name, url, scraper_config.items_per_category
                )
                products.extend(items)

                if position < len(scraper_config.categories) - 1:
                    await self.settler.between_categories()

        console.print(f"[green]Extracted {len(products)} products[/green]")
        return products

    def _count_by_category(self) -> None:
        counts = {category.name: 0 for category in self.config.scraper.categories}
        for item in self.items:
            counts[item.category] = counts.get(item.category, 0) + 1
        self.category_counts = counts

    def _print_header(self):
        """Print pipeline header."""
        scraper_config = self.config.scraper
        names = ", ".join(category.name for category in scraper_config.categories)
        header = Panel(
            "[bold white]FURNITURE CATALOG PIPELINE[/bold white]\n"
            f"[dim]Categories: {escape(names)}[/dim]\n"
            f"[dim]Items per category: {scraper_config.items_per_category}[/dim]\n"
            f"[dim]Currency: {self.transformer.currency}[/dim]\n"
            f"[dim]Output: {escape(str(self.config.catalog.data_dir))}[/dim]",
            title="Furniture Scraper",
            border_style="blue",
        )
        console.print(header)

    def _print_summary(self, elapsed: float, write_result: Optional[CatalogWriteResult]):
        """Print final pipeline summary."""
        table = Table(title="Items per Category", show_header=True)
        table.add_column("Category", style="cyan")
        table.add_column("Items", style="green", justify="right")
        for name, count in self.category_counts.items():
            table.add_row(escape(name), str(count))

        console.print("\n")
        console.print(table)
        console.print(f"[dim]Scraped {len(self.items)} items in {elapsed:.1f} seconds[/dim]")
        if write_result:
            console.print(
                f"[dim]Catalog {write_result.number}: {write_result.total_items}/"
                f"{self.config.catalog.max_items} items"
                f"{' (complete)' if write_result.is_complete else ''}[/dim]"
            )

        converter = self.transformer.converter
        for item in self.items:
            console.print(
                f"  • [cyan]{escape(item.title)}[/cyan] "
                f"({converter.format(item.price.amount, item.price.currency)}) - "
                f"{escape(item.category)}"
            )
