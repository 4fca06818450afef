"""
Configuration settings for the furniture catalog scraper.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent


@dataclass(frozen=True)
class CategoryConfig:
    """A retailer category listing to scrape."""

    name: str
    url: str
    page_count: int = 1

    def page_url(self, page: int) -> str:
        """Build the listing URL for a given page number (1-based)."""
        if page <= 1:
            return self.url
        sep = "&" if "?" in self.url else "?"
        return f"{self.url}{sep}page={page}"


@dataclass(frozen=True)
class DetailProbe:
    """Attribute names and CSS selectors tried, in order, for one detail field."""

    attributes: tuple[str, ...] = ()
    selectors: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {"attributes": list(self.attributes), "selectors": list(self.selectors)}


@dataclass(frozen=True)
class ScraperConfig:
    """Configuration for the category scraper and browser session."""

    source: str = "ikea"

    # Living room, bedroom, dining listings on the US store
    categories: tuple[CategoryConfig, ...] = (
        CategoryConfig(
            name="Living Room",
            url="https://www.ikea.com/us/en/cat/sofas-sectionals-fu003/",
            page_count=5,
        ),
        CategoryConfig(
            name="Bedroom",
            url="https://www.ikea.com/us/en/cat/beds-bm003/",
            page_count=8,
        ),
        CategoryConfig(
            name="Dining",
            url="https://www.ikea.com/us/en/cat/dining-sets-25219/",
            page_count=3,
        ),
    )

    # Scraping limits
    items_per_category: int = 7
    max_retries: int = 3
    randomize_page: bool = True
    fixed_page: int = 1

    # Browser settings
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    )
    blocked_resource_types: tuple[str, ...] = ("image", "font", "media")

    # Timeouts (ms)
    navigation_timeout_ms: int = 5000
    content_timeout_ms: int = 1000
    selector_timeout_ms: int = 10000

    # Landing here means the category template was not served
    redirect_marker: str = "/products-products/"

    content_selector: str = (
        '.plp-fragment-wrapper, .product-listing-page, [data-ref-type="product"]'
    )

    # Priority order matters: the first selector with matches wins
    product_selectors: tuple[str, ...] = (
        ".pip-product-compact",
        "[data-product-card]",
        ".product-compact",
        ".product-card",
        ".product",
        ".plp-fragment-wrapper",
        ".plp-product-list__products",
        '[data-ref-type="product"]',
    )

    price_selectors: tuple[str, ...] = (
        ".pip-price__integer",
        'span[class*="price"]',
        "[data-price]",
    )
    description_selectors: tuple[str, ...] = (
        '[class*="description"]',
        '[class*="product-details"]',
    )
    detail_probes: dict = field(
        default_factory=lambda: {
            "materials": DetailProbe(
                attributes=("data-material", "data-materials"),
                selectors=('[class*="material"]',),
            ),
            "dimensions": DetailProbe(
                attributes=("data-dimensions", "data-measurement"),
                selectors=('[class*="dimension"]', '[class*="measurement"]'),
            ),
            "color": DetailProbe(
                attributes=("data-color", "data-colour"),
                selectors=('[class*="colour"]', '[class*="color"]'),
            ),
        }
    )
    product_url_template: str = "https://www.ikea.com/us/en/p/{ref_id}/"
    sample_length: int = 100

    def extraction_probes(self) -> dict:
        """Selectors and probes handed to the in-page field extraction."""
        return {
            "price_selectors": list(self.price_selectors),
            "description_selectors": list(self.description_selectors),
            "details": {
                name: probe.as_dict() for name, probe in self.detail_probes.items()
            },
        }


@dataclass(frozen=True)
class DelayConfig:
    """Fixed waits (seconds) used to let the page settle."""

    after_content: float = 2.0
    after_selector: float = 2.0
    before_retry: float = 2.0
    between_categories: float = 1.0


@dataclass(frozen=True)
class CurrencyConfig:
    """Static currency conversion table (base currency is the retailer's)."""

    base_currency: str = "USD"
    target_currency: str = "USD"
    rates: dict = field(
        default_factory=lambda: {
            "USD": 1.0,
            "EUR": 0.92,
            "GBP": 0.79,
            "CAD": 1.36,
            "SEK": 10.45,
        }
    )
    symbols: dict = field(
        default_factory=lambda: {
            "USD": "$",
            "EUR": "€",
            "GBP": "£",
            "CAD": "C$",
            "SEK": "kr",
        }
    )


@dataclass(frozen=True)
class CatalogConfig:
    """Configuration for the numbered catalog files."""

    data_dir: Path = PROJECT_ROOT / "data" / "catalogs"
    file_prefix: str = "furniture-catalog-"
    max_items: int = 100
    # An incomplete catalog with at least this many items is preferred
    min_active_items: int = 1

    def catalog_path(self, number: int) -> Path:
        """Path of the catalog file with the given number."""
        return self.data_dir / f"{self.file_prefix}{number}.json"

    def ensure_dirs(self) -> None:
        """Create the data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for the run transcript."""

    log_dir: Path = PROJECT_ROOT / "logs"
    log_to_file: bool = True

    def ensure_dirs(self) -> None:
        """Create log directory if it doesn't exist."""
        self.log_dir.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class PipelineConfig:
    """Main configuration combining all settings."""

    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    delays: DelayConfig = field(default_factory=DelayConfig)
    currency: CurrencyConfig = field(default_factory=CurrencyConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "PipelineConfig":
        """
        Build a configuration, applying overrides from the environment.

        Reads a .env file at the project root (or env_file) first. Recognised
        variables: FURNITURE_DATA_DIR, FURNITURE_CURRENCY, SCRAPER_HEADLESS,
        SCRAPER_ITEMS_PER_CATEGORY.

        Raises:
            ValueError: If a numeric override is not a positive integer
        """
        load_dotenv(env_file or PROJECT_ROOT / ".env")
        base = cls()

        scraper = base.scraper
        if os.getenv("SCRAPER_HEADLESS"):
            scraper = replace(
                scraper, headless=os.getenv("SCRAPER_HEADLESS").lower() == "true"
            )
        if os.getenv("SCRAPER_ITEMS_PER_CATEGORY"):
            items = int(os.getenv("SCRAPER_ITEMS_PER_CATEGORY"))
            if items < 1:
                raise ValueError(
                    f"SCRAPER_ITEMS_PER_CATEGORY must be at least 1, got {items}"
                )
            scraper = replace(scraper, items_per_category=items)

        catalog = base.catalog
        if os.getenv("FURNITURE_DATA_DIR"):
            catalog = replace(catalog, data_dir=Path(os.getenv("FURNITURE_DATA_DIR")))

        currency = base.currency
        if os.getenv("FURNITURE_CURRENCY"):
            currency = replace(
                currency, target_currency=os.getenv("FURNITURE_CURRENCY").upper()
            )

        return replace(base, scraper=scraper, catalog=catalog, currency=currency)


# Default configuration instance
config = PipelineConfig()
