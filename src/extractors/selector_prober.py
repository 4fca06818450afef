"""
Finds which of the known product-card selectors the current page uses.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from rich.markup import escape

from src.extractors.dom import DomQueryExecutor
from src.utils import console


@dataclass
class SelectorProbe:
    """Result of evaluating one candidate selector."""

    selector: str
    count: int
    sample: str = ""


class SelectorProber:
    """Evaluates candidate selectors in priority order."""

    def __init__(self, selectors: Sequence[str], sample_length: int = 100):
        self.selectors = tuple(selectors)
        self.sample_length = sample_length

    async def probe_all(self, page: DomQueryExecutor) -> list[SelectorProbe]:
        """Count matches (and grab a markup sample) for every candidate."""
        results = []
        for selector in self.selectors:
            count = await page.count(selector)
            sample = ""
            if count > 0:
                sample = await page.sample(selector, self.sample_length)
            results.append(SelectorProbe(selector=selector, count=count, sample=sample))
        return results

    async def find_working_selector(
        self, page: DomQueryExecutor, label: str = ""
    ) -> Optional[SelectorProbe]:
        """
        Return the first selector, in priority order, with at least one match.

        Args:
            page: Page to probe
            label: Category name used as log prefix

        Returns:
            The winning SelectorProbe, or None if nothing matched
        """
        prefix = escape(f"[{label}] ") if label else ""
        console.print(f"[dim]{prefix}Checking available product selectors...[/dim]")

        results = await self.probe_all(page)
        for result in results:
            if result.count > 0:
                console.print(
                    f"[dim]  {escape(result.selector)}: {result.count} elements found[/dim]"
                )
                console.print(f"  Sample: {result.sample}", style="dim", markup=False)

        return next((r for r in results if r.count > 0), None)
