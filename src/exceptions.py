"""
Exception hierarchy for the scraper pipeline.

BrowserLaunchError is the only fatal error; category errors are retried by
the category scraper and degrade to an empty result.
"""


class ScraperError(Exception):
    """Base class for scraper errors."""


class BrowserLaunchError(ScraperError):
    """The headless browser could not be started."""


class CategoryScrapeError(ScraperError):
    """A single attempt at scraping a category failed."""


class RedirectedError(CategoryScrapeError):
    """The category URL redirected to the generic product listing."""

    def __init__(self, expected_url: str, actual_url: str):
        super().__init__(f"Redirected to general products page: {actual_url}")
        self.expected_url = expected_url
        self.actual_url = actual_url


class NoProductSelectorError(CategoryScrapeError):
    """None of the known product-card selectors matched the page."""


class CatalogError(ScraperError):
    """Catalog files could not be read or written."""


class CatalogCompleteError(CatalogError):
    """Attempted to write new items into a catalog that is already complete."""

    def __init__(self, number: int):
        super().__init__(f"Catalog {number} is complete and cannot be modified")
        self.number = number
