#!/usr/bin/env python3
"""
Furniture Catalog Scraper - Main Entry Point

Scrapes furniture listings from retailer category pages and merges them into
numbered catalog files read by the swipe app.

Usage:
    python main.py                    # Run with default settings
    python main.py -n 10              # 10 items per category
    python main.py -c Dining          # Only the Dining category
    python main.py --stats            # Show catalog files and exit
"""
import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from rich.markup import escape
from rich.table import Table

from config.settings import PipelineConfig
from src.loaders.catalog_store import CatalogStore
from src.pipeline import FurniturePipeline
from src.utils import console, save_run_log


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that preserves formatting and adds width."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=40, width=100)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv=None, base_config: PipelineConfig = None):
    """Parse command line arguments."""
    base_config = base_config or PipelineConfig()
    category_list = "\n".join(
        f"    {category.name:<14} {category.url} ({category.page_count} pages)"
        for category in base_config.scraper.categories
    )
    currencies = ", ".join(base_config.currency.rates.keys())

    epilog = f"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
AVAILABLE CATEGORIES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
{category_list}

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
EXAMPLES
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    python main.py                          Default: 7 items per category
    python main.py -n 3 -c Dining           3 dining sets
    python main.py --page 2                 Always scrape page 2
    python main.py --currency EUR           Store prices in euros
    python main.py --headless false         Watch the browser scrape
    python main.py --stats                  List catalog files

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
DATA OUTPUT
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  {base_config.catalog.data_dir}/{base_config.catalog.file_prefix}<N>.json
    • items: furniture records (deduplicated by URL)
    • meta:  lastUpdate, totalItems, isComplete
  A catalog is complete at {base_config.catalog.max_items} items; later runs start the next number.

  Supported currencies: {currencies}
"""

    parser = argparse.ArgumentParser(
        prog="python main.py",
        description="""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
                        FURNITURE CATALOG SCRAPER
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
Scrapes furniture category listings (title, price, link, image, details)
and merges the results into size-capped catalog files.
""",
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
    )

    scrape_group = parser.add_argument_group(
        "Scraping Options", "Control what and how much to scrape"
    )
    scrape_group.add_argument(
        "--items",
        "-n",
        type=positive_int,
        default=base_config.scraper.items_per_category,
        metavar="NUM",
        help=f"Items to scrape per category (default: {base_config.scraper.items_per_category})",
    )
    scrape_group.add_argument(
        "--categories",
        "-c",
        type=str,
        nargs="+",
        default=None,
        metavar="CAT",
        help="Category names to scrape (default: all). See list below.",
    )
    page_group = scrape_group.add_mutually_exclusive_group()
    page_group.add_argument(
        "--page",
        type=positive_int,
        default=None,
        metavar="NUM",
        help="Scrape this page of every category instead of a random one",
    )
    page_group.add_argument(
        "--random-pages",
        action="store_true",
        help="Pick a random page per category (default)",
    )

    browser_group = parser.add_argument_group(
        "Browser Options", "Control the browser behavior"
    )
    browser_group.add_argument(
        "--headless",
        type=str,
        default="true" if base_config.scraper.headless else "false",
        choices=["true", "false"],
        metavar="BOOL",
        help="Run browser invisibly (default: true). Set 'false' to watch.",
    )

    storage_group = parser.add_argument_group(
        "Storage Options", "Control where and how the catalog is written"
    )
    storage_group.add_argument(
        "--data-dir",
        "-o",
        type=str,
        default=None,
        metavar="DIR",
        help=f"Catalog directory (default: {base_config.catalog.data_dir})",
    )
    storage_group.add_argument(
        "--currency",
        type=str,
        default=base_config.currency.target_currency,
        metavar="CODE",
        help=f"Currency for stored prices (default: {base_config.currency.target_currency})",
    )
    storage_group.add_argument(
        "--cap",
        type=positive_int,
        default=base_config.catalog.max_items,
        metavar="NUM",
        help=f"Items per catalog file (default: {base_config.catalog.max_items})",
    )
    storage_group.add_argument(
        "--stats",
        action="store_true",
        help="Show catalog files and exit",
    )
    storage_group.add_argument(
        "--no-log-file",
        action="store_true",
        help="Don't save the run transcript to the log directory",
    )

    return parser.parse_args(argv)


def create_config(args, base_config: PipelineConfig) -> PipelineConfig:
    """Create pipeline configuration from arguments."""
    categories = base_config.scraper.categories
    if args.categories:
        wanted = {name.lower() for name in args.categories}
        categories = tuple(c for c in categories if c.name.lower() in wanted)
        unknown = wanted - {c.name.lower() for c in categories}
        if unknown:
            raise ValueError(f"Unknown categories: {', '.join(sorted(unknown))}")

    scraper_kwargs = dict(
        categories=categories,
        items_per_category=args.items,
        headless=args.headless.lower() == "true",
    )
    if args.page is not None:
        scraper_kwargs.update(randomize_page=False, fixed_page=args.page)
    elif args.random_pages:
        scraper_kwargs.update(randomize_page=True)

    currency = args.currency.upper()
    if currency not in base_config.currency.rates:
        raise ValueError(f"Unsupported currency: {currency}")

    catalog_kwargs = dict(max_items=args.cap)
    if args.data_dir:
        catalog_kwargs.update(data_dir=Path(args.data_dir))

    return replace(
        base_config,
        scraper=replace(base_config.scraper, **scraper_kwargs),
        currency=replace(base_config.currency, target_currency=currency),
        catalog=replace(base_config.catalog, **catalog_kwargs),
        logging=replace(
            base_config.logging,
            log_to_file=base_config.logging.log_to_file and not args.no_log_file,
        ),
    )


async def show_stats(config: PipelineConfig) -> int:
    """Print every catalog file with its size and completion flag."""
    store = CatalogStore(config.catalog)
    infos = await store.stats()
    if not infos:
        console.print(
            f"[yellow]No catalogs in {escape(str(config.catalog.data_dir))}[/yellow]"
        )
        return 0

    table = Table(title="Catalogs", show_header=True)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("File", style="white")
    table.add_column("Items", style="green", justify="right")
    table.add_column("Complete", style="magenta")
    table.add_column("Last Update", style="dim")
    for info in infos:
        table.add_row(
            str(info.number),
            escape(info.path.name),
            f"{info.total_items}/{config.catalog.max_items}",
            "yes" if info.is_complete else "no",
            info.last_update or "-",
        )
    console.print(table)
    return 0


async def run_pipeline(config: PipelineConfig) -> dict:
    """Run the ETL pipeline with given config."""
    pipeline = FurniturePipeline(config)
    return await pipeline.run()


def main(argv=None):
    """Main entry point."""
    try:
        base_config = PipelineConfig.from_env()
    except ValueError as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        return 2
    args = parse_args(argv, base_config)

    try:
        config = create_config(args, base_config)
    except ValueError as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        return 2

    if args.stats:
        return asyncio.run(show_stats(config))

    try:
        result = asyncio.run(run_pipeline(config))
        if result["success"]:
            console.print("\n[bold green]✓ Pipeline completed successfully![/bold green]")
            exit_code = 0
        else:
            console.print(
                f"\n[bold red]✗ Pipeline failed: {escape(result.get('error', ''))}[/bold red]"
            )
            exit_code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline cancelled by user[/yellow]")
        exit_code = 130

    if config.logging.log_to_file:
        log_path = save_run_log(config.logging.log_dir)
        print(f"Run log saved to {log_path}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
