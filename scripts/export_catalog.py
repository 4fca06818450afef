#!/usr/bin/env python3
"""
Export every catalog file into one flat JSON array of furniture items.

The swipe app can load this as a single static asset instead of walking the
numbered catalog files. Items keep catalog order and are deduplicated by URL.

Usage:
    python scripts/export_catalog.py
    python scripts/export_catalog.py -o public/furniture.json
    python scripts/export_catalog.py --complete-only   # Skip the catalog still filling

Run from project root.
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

# Project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from rich.markup import escape

from config.settings import PipelineConfig
from src.exceptions import CatalogError
from src.loaders.catalog_store import CatalogStore, merge_items, write_json_atomic
from src.utils import console


async def export_items(store: CatalogStore, out_path: Path, complete_only: bool = False) -> int:
    """Write the merged item list to out_path and return how many were written."""
    if complete_only:
        items = []
        for number in store.catalog_numbers():
            catalog = await store.load(number)
            if catalog.meta.is_complete:
                items = merge_items(items, catalog.items)
    else:
        items = await store.all_items()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    await write_json_atomic(out_path, [item.to_json_dict() for item in items])
    return len(items)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Export all furniture catalogs to a single JSON array."
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON file path (default: <data dir>/furniture.json)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Catalog directory (default: from settings / FURNITURE_DATA_DIR)",
    )
    parser.add_argument(
        "--complete-only",
        action="store_true",
        help="Only export catalogs that reached the item cap",
    )
    args = parser.parse_args()

    config = PipelineConfig.from_env()
    catalog_config = config.catalog
    if args.data_dir:
        catalog_config = replace(catalog_config, data_dir=args.data_dir)

    store = CatalogStore(catalog_config)
    out_path = (args.output or catalog_config.data_dir / "furniture.json").resolve()

    if not store.catalog_numbers():
        console.print(
            f"[yellow]No catalogs found in {escape(str(catalog_config.data_dir))}[/yellow]"
        )
        return 1

    try:
        count = asyncio.run(export_items(store, out_path, args.complete_only))
    except CatalogError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    console.print(f"[green]Exported {count} item(s) to [bold]{escape(str(out_path))}[/bold][/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
