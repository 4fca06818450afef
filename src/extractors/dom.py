"""
DOM query interface used by the scraping logic, plus its Playwright binding.

The selector prober, product extractor and category scraper only talk to a
CategoryPage; PlaywrightPage is the one place that knows about Playwright.
"""

import asyncio
from typing import Any, Optional, Protocol

from playwright.async_api import ElementHandle, Page

# Runs inside the page against one product card; returns raw strings only,
# all parsing happens in Python (see ProductExtractor.parse_fields).
EXTRACT_FIELDS_JS = """
(el, probes) => {
    const text = (node) => (node && node.textContent ? node.textContent.trim() : '');
    const productEl = el.querySelector('[data-product-name]') || el;

    let title = productEl.getAttribute('data-product-name') || '';
    const firstLink = productEl.querySelector('a');
    if (!title && firstLink) {
        title = firstLink.getAttribute('aria-label') || '';
    }

    const priceEl = productEl.querySelector(probes.price_selectors.join(', '));
    const priceText = text(priceEl);

    let url = '';
    let imageUrl = '';
    const anchor = firstLink || (productEl.tagName === 'A' ? productEl : null);
    if (anchor) {
        url = anchor.href || '';
        const img = anchor.querySelector('img');
        if (img) imageUrl = img.src || '';
    } else {
        const img = productEl.querySelector('img');
        if (img) imageUrl = img.src || '';
    }

    const details = {};
    for (const [name, probe] of Object.entries(probes.details)) {
        let value = '';
        for (const attr of probe.attributes) {
            value = productEl.getAttribute(attr) || '';
            if (value) break;
        }
        if (!value) {
            for (const sel of probe.selectors) {
                value = text(productEl.querySelector(sel));
                if (value) break;
            }
        }
        details[name] = value;
    }

    const descriptionParts = [];
    for (const sel of probes.description_selectors) {
        productEl.querySelectorAll(sel).forEach(node => {
            const t = text(node);
            if (t && !descriptionParts.includes(t)) descriptionParts.push(t);
        });
    }

    return {
        title: title,
        price_attr: productEl.getAttribute('data-price') || '',
        price_text: priceText,
        url: url,
        image_url: imageUrl,
        ref_id: productEl.getAttribute('data-ref-id') || '',
        materials: details.materials || '',
        dimensions: details.dimensions || '',
        color: details.color || '',
        description: descriptionParts.join(' '),
    };
}
"""

SAMPLE_JS = """
([selector, length]) => {
    const el = document.querySelector(selector);
    return el ? el.innerHTML.slice(0, length) : '';
}
"""


class DomQueryExecutor(Protocol):
    """Read-only queries against the current document."""

    async def count(self, selector: str) -> int: ...

    async def sample(self, selector: str, length: int = 100) -> str: ...

    async def query_all(self, selector: str) -> list[Any]: ...

    async def extract_fields(self, element: Any, probes: dict) -> dict: ...


class CategoryPage(DomQueryExecutor, Protocol):
    """A browser page that can be navigated and inspected."""

    async def set_user_agent(self, user_agent: str) -> None: ...

    async def goto(self, url: str, timeout_ms: int) -> None: ...

    async def current_url(self) -> str: ...

    async def title(self) -> str: ...

    async def first_heading(self) -> Optional[str]: ...

    async def body_preview(self, length: int = 500) -> str: ...

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None: ...


class PlaywrightPage:
    """CategoryPage backed by a Playwright async Page."""

    def __init__(self, page: Page):
        self.page = page
        # Every evaluate goes through one channel to the browser
        self._lock = asyncio.Lock()

    async def set_user_agent(self, user_agent: str) -> None:
        await self.page.set_extra_http_headers({"User-Agent": user_agent})

    async def goto(self, url: str, timeout_ms: int) -> None:
        await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)

    async def current_url(self) -> str:
        return self.page.url

    async def title(self) -> str:
        return await self.page.title()

    async def first_heading(self) -> Optional[str]:
        heading = await self.page.query_selector("h1")
        if heading is None:
            return None
        return await heading.text_content()

    async def body_preview(self, length: int = 500) -> str:
        async with self._lock:
            text = await self.page.evaluate("() => document.body ? document.body.innerText : ''")
        return (text or "")[:length]

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        await self.page.wait_for_selector(selector, timeout=timeout_ms)

    async def count(self, selector: str) -> int:
        async with self._lock:
            return await self.page.locator(selector).count()

    async def sample(self, selector: str, length: int = 100) -> str:
        async with self._lock:
            return await self.page.evaluate(SAMPLE_JS, [selector, length])

    async def query_all(self, selector: str) -> list[ElementHandle]:
        async with self._lock:
            return await self.page.query_selector_all(selector)

    async def extract_fields(self, element: ElementHandle, probes: dict) -> dict:
        async with self._lock:
            return await element.evaluate(EXTRACT_FIELDS_JS, probes)
