"""
Product card extraction.

Raw strings are pulled out of each card by the page (DomQueryExecutor.extract_fields);
everything else - price parsing, URL fallback, validity - happens here.
"""

import asyncio
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from rich.markup import escape

from config.settings import ScraperConfig
from src.extractors.dom import DomQueryExecutor
from src.utils import console


def _clean(value: Any) -> str:
    if not value:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def parse_price(price_attr: Any, price_text: Any) -> float:
    """
    Parse a scraped price.

    A numeric data-price attribute wins; otherwise the price element text is
    stripped of everything but digits and dots. Unparseable or non-finite
    prices are 0.
    """
    if price_attr:
        try:
            value = float(price_attr)
        except (TypeError, ValueError):
            return 0.0
    else:
        digits = re.sub(r"[^0-9.]", "", str(price_text or ""))
        try:
            value = float(digits)
        except ValueError:
            return 0.0

    if not math.isfinite(value):
        return 0.0
    return max(round(value, 2), 0.0)


@dataclass
class RawFurnitureData:
    """Raw product card data extracted from a category page."""

    index: int
    category: str
    title: str
    url: str
    price: float = 0.0
    image_url: str = ""
    description: str = ""
    materials: Optional[str] = None
    dimensions: Optional[str] = None
    color: Optional[str] = None
    scraped_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class ProductExtractor:
    """Turns product card elements into RawFurnitureData records."""

    def __init__(self, scraper_config: Optional[ScraperConfig] = None):
        self.config = scraper_config or ScraperConfig()
        self.probes = self.config.extraction_probes()

    def parse_fields(
        self, raw: dict, index: int, category: str
    ) -> Optional[RawFurnitureData]:
        """
        Build a record from the raw field dict of one card.

        Returns None when the title or URL could not be resolved.
        """
        title = _clean(raw.get("title"))
        url = _clean(raw.get("url"))

        if not url:
            ref_id = _clean(raw.get("ref_id"))
            if ref_id:
                url = self.config.product_url_template.format(ref_id=ref_id)

        if not title or not url:
            return None

        return RawFurnitureData(
            index=index,
            category=category,
            title=title,
            url=url,
            price=parse_price(raw.get("price_attr"), raw.get("price_text")),
            image_url=_clean(raw.get("image_url")),
            description=_clean(raw.get("description")),
            materials=_clean(raw.get("materials")) or None,
            dimensions=_clean(raw.get("dimensions")) or None,
            color=_clean(raw.get("color")) or None,
        )

    async def extract(
        self, page: DomQueryExecutor, element: Any, index: int, category: str
    ) -> Optional[RawFurnitureData]:
        """Extract one card. Any failure yields None."""
        tag = escape(f"[{category}]")
        try:
            raw = await page.extract_fields(element, self.probes)
        except Exception as e:
            console.print(
                f"[red]{tag} Error processing product {index + 1}: {escape(str(e))}[/red]"
            )
            return None

        product = self.parse_fields(raw or {}, index, category)
        if product is None:
            console.print(
                f"[yellow]{tag} Skipping product {index + 1}: missing title or URL[/yellow]"
            )
        else:
            console.print(
                f"[dim]{tag} Extracted product {index + 1}: {escape(product.title)}[/dim]"
            )
        return product

    async def extract_all(
        self, page: DomQueryExecutor, elements: Sequence[Any], category: str
    ) -> list[RawFurnitureData]:
        """
        Extract every card concurrently.

        Results keep element order; invalid or failed cards are dropped.
        """
        results = await asyncio.gather(
            *(
                self.extract(page, element, index, category)
                for index, element in enumerate(elements)
            )
        )
        return [product for product in results if product is not None]
