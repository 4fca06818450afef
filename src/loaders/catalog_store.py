"""
Catalog store: numbered, size-capped JSON catalog files.

Files live in one data directory as <prefix><n>.json. New items are merged
into the active catalog (deduplicated by URL); once a catalog reaches the
cap it is marked complete and never written again.
"""

import json
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
import aiofiles.os
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.markup import escape

from config.settings import CatalogConfig
from src.exceptions import CatalogCompleteError, CatalogError
from src.transformers.product_transformer import FurnitureItem
from src.utils import console


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CatalogMeta(BaseModel):
    """Bookkeeping written alongside the items."""

    model_config = ConfigDict(populate_by_name=True)

    last_update: str = Field(default_factory=_utc_now, alias="lastUpdate")
    total_items: int = Field(default=0, alias="totalItems")
    is_complete: bool = Field(default=False, alias="isComplete")


class Catalog(BaseModel):
    """A persisted batch of furniture items."""

    items: list[FurnitureItem] = Field(default_factory=list)
    meta: CatalogMeta = Field(default_factory=CatalogMeta)

    def to_json_dict(self) -> dict:
        return {
            "items": [item.to_json_dict() for item in self.items],
            "meta": self.meta.model_dump(mode="json", by_alias=True),
        }


@dataclass
class CatalogWriteResult:
    """What a persist call did."""

    number: int
    path: Path
    added: int
    total_items: int
    is_complete: bool


@dataclass
class CatalogInfo:
    """One row of the --stats listing."""

    number: int
    path: Path
    total_items: int
    is_complete: bool
    last_update: Optional[str]


def merge_items(
    existing: Iterable[FurnitureItem], new: Iterable[FurnitureItem]
) -> list[FurnitureItem]:
    """
    Concatenate existing and new items, keeping the first item per URL.

    Items without a title or URL are dropped.
    """
    seen: set[str] = set()
    merged = []
    for item in [*existing, *new]:
        if not item.title or not item.url or item.url in seen:
            continue
        seen.add(item.url)
        merged.append(item)
    return merged


def apply_cap(items: list[FurnitureItem], max_items: int) -> tuple[list[FurnitureItem], bool]:
    """Truncate to max_items (keeping the earliest) and report completeness."""
    if len(items) >= max_items:
        return items[:max_items], True
    return items, False


async def write_json_atomic(path: Path, payload) -> None:
    """
    Write JSON to a temp file in the same directory, then rename over path.

    Readers never see a partially written file; on failure the temp file is
    removed and the previous file is left untouched.
    """
    tmp_path = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"
    try:
        data = json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False)
    except ValueError as e:
        raise CatalogError(f"Refusing to write {path}: {e}") from e

    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(data)
            await f.flush()
        await aiofiles.os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path.exists():
            await aiofiles.os.remove(tmp_path)
        raise CatalogError(f"Failed to write {path}: {e}") from e


class CatalogStore:
    """Reads, selects and writes catalog files."""

    def __init__(self, catalog_config: Optional[CatalogConfig] = None):
        self.config = catalog_config or CatalogConfig()
        self._pattern = re.compile(rf"^{re.escape(self.config.file_prefix)}(\d+)\.json$")

    def catalog_path(self, number: int) -> Path:
        return self.config.catalog_path(number)

    def catalog_numbers(self) -> list[int]:
        """Numbers of the catalog files on disk, ascending."""
        if not self.config.data_dir.exists():
            return []
        numbers = []
        for path in self.config.data_dir.iterdir():
            match = self._pattern.match(path.name)
            if match and path.is_file():
                numbers.append(int(match.group(1)))
        return sorted(numbers)

    async def load(self, number: int) -> Catalog:
        """
        Load a catalog; a missing or unreadable file yields an empty one.

        Individual items that fail validation are skipped with a warning.
        """
        path = self.catalog_path(number)
        if not path.exists():
            return Catalog()

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
            meta = CatalogMeta.model_validate(data.get("meta") or {})
            raw_items = data.get("items") or []
        except (OSError, ValueError, AttributeError) as e:
            console.print(
                f"[yellow]Could not read catalog {escape(str(path))}: {escape(str(e))}[/yellow]"
            )
            return Catalog()

        if not isinstance(raw_items, list):
            console.print(
                f"[yellow]Could not read catalog {escape(str(path))}: "
                f"items is not a list[/yellow]"
            )
            return Catalog()

        items = []
        for raw in raw_items:
            try:
                items.append(FurnitureItem.model_validate(raw))
            except ValidationError as e:
                console.print(
                    f"[yellow]Skipping invalid item in {escape(path.name)}: "
                    f"{escape(str(e.errors()[0]['msg']))}[/yellow]"
                )
        return Catalog(items=items, meta=meta)

    async def select_catalog_number(self) -> int:
        """
        Pick the catalog to write to.

        Preference: the lowest-numbered incomplete catalog that already holds
        min_active_items, then any incomplete catalog, then a new number.
        """
        numbers = self.catalog_numbers()
        catalogs = [(number, await self.load(number)) for number in numbers]

        for number, catalog in catalogs:
            if (
                not catalog.meta.is_complete
                and len(catalog.items) >= self.config.min_active_items
            ):
                return number

        for number, catalog in catalogs:
            if not catalog.meta.is_complete:
                return number

        number = len(numbers) + 1
        while number in numbers:
            number += 1
        return number

    async def save(self, number: int, catalog: Catalog) -> Path:
        """Write a catalog file atomically."""
        self.config.ensure_dirs()
        path = self.catalog_path(number)
        await write_json_atomic(path, catalog.to_json_dict())
        return path

    async def persist(self, new_items: list[FurnitureItem]) -> CatalogWriteResult:
        """
        Merge new items into the active catalog and write it.

        Args:
            new_items: Freshly scraped items, in scrape order

        Returns:
            CatalogWriteResult describing the written catalog
        """
        number = await self.select_catalog_number()
        existing = await self.load(number)
        if existing.meta.is_complete:
            raise CatalogCompleteError(number)

        merged = merge_items(existing.items, new_items)
        items, is_complete = apply_cap(merged, self.config.max_items)

        catalog = Catalog(
            items=items,
            meta=CatalogMeta(
                last_update=_utc_now(),
                total_items=len(items),
                is_complete=is_complete,
            ),
        )
        path = await self.save(number, catalog)

        added = len(items) - len(existing.items)
        console.print(
            f"[green]Catalog {number}: +{added} items "
            f"({len(items)}/{self.config.max_items}"
            f"{', complete' if is_complete else ''}) -> {escape(str(path))}[/green]"
        )
        return CatalogWriteResult(
            number=number,
            path=path,
            added=added,
            total_items=len(items),
            is_complete=is_complete,
        )

    async def stats(self) -> list[CatalogInfo]:
        """Summary of every catalog on disk."""
        infos = []
        for number in self.catalog_numbers():
            catalog = await self.load(number)
            infos.append(
                CatalogInfo(
                    number=number,
                    path=self.catalog_path(number),
                    total_items=len(catalog.items),
                    is_complete=catalog.meta.is_complete,
                    last_update=catalog.meta.last_update,
                )
            )
        return infos

    async def all_items(self) -> list[FurnitureItem]:
        """Items from every catalog in catalog order, deduplicated by URL."""
        items: list[FurnitureItem] = []
        for number in self.catalog_numbers():
            catalog = await self.load(number)
            items = merge_items(items, catalog.items)
        return items
