"""
Product transformer for cleaning and normalizing scraped data.

Produces FurnitureItem records in the JSON shape the swipe app reads:
camelCase imageUrl, nested price and details objects.
"""

import hashlib
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from rich.markup import escape

from config.settings import CurrencyConfig
from src.extractors.product_extractor import RawFurnitureData
from src.transformers.currency import CurrencyConverter
from src.utils import console


class Price(BaseModel):
    """Converted price."""

    amount: float = Field(ge=0, allow_inf_nan=False)
    currency: str

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: float) -> float:
        return round(v, 2)


class ItemDetails(BaseModel):
    """Best-effort product details; any field may be missing."""

    materials: Optional[str] = None
    dimensions: Optional[str] = None
    color: Optional[str] = None


class FurnitureItem(BaseModel):
    """A catalog record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = Field(min_length=1)
    description: str
    price: Price
    category: str
    image_url: str = Field(alias="imageUrl")
    url: str = Field(min_length=1)
    details: ItemDetails = Field(default_factory=ItemDetails)

    @field_validator("title", "url", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    def to_json_dict(self) -> dict:
        """Serialize with the app's field names, omitting empty details."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_description(
    title: str,
    description: Optional[str] = None,
    color: Optional[str] = None,
    materials: Optional[str] = None,
    dimensions: Optional[str] = None,
) -> str:
    """Join title, scraped text and one sentence per known detail."""
    parts = [title]
    if description and description != title:
        parts.append(description)
    if color:
        parts.append(f"Available in {color}.")
    if materials:
        parts.append(f"Made from {materials}.")
    if dimensions:
        parts.append(f"Dimensions: {dimensions}.")
    return " ".join(part for part in parts if part)


def item_id(source: str, url: str) -> str:
    """Stable id derived from the product URL."""
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
    return f"{source}-{digest}"


class FurnitureTransformer:
    """Transforms raw card data into FurnitureItem records."""

    def __init__(
        self,
        source: str = "ikea",
        currency_config: Optional[CurrencyConfig] = None,
    ):
        self.source = source
        self.converter = CurrencyConverter(currency_config)
        # Fail fast on a misconfigured target currency
        self.converter.rate(self.currency)

    @property
    def currency(self) -> str:
        return self.converter.config.target_currency

    def transform(self, raw: RawFurnitureData) -> Optional[FurnitureItem]:
        """Transform one raw record; returns None if it fails validation."""
        try:
            return FurnitureItem(
                id=item_id(self.source, raw.url),
                title=raw.title,
                description=build_description(
                    raw.title,
                    raw.description,
                    color=raw.color,
                    materials=raw.materials,
                    dimensions=raw.dimensions,
                ),
                price=Price(
                    amount=self.converter.convert(raw.price, self.currency),
                    currency=self.currency,
                ),
                category=raw.category,
                image_url=raw.image_url or raw.url,
                url=raw.url,
                details=ItemDetails(
                    materials=raw.materials,
                    dimensions=raw.dimensions,
                    color=raw.color,
                ),
            )
        except ValueError as e:
            console.print(
                f"[yellow]Error transforming product {escape(raw.url or raw.title)}: "
                f"{escape(str(e))}[/yellow]"
            )
            return None

    def transform_batch(self, raw_data_list: list[RawFurnitureData]) -> list[FurnitureItem]:
        """Transform a batch of raw product data."""
        results = []
        for raw_data in raw_data_list:
            transformed = self.transform(raw_data)
            if transformed:
                results.append(transformed)
        return results
