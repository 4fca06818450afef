"""
End-to-end pipeline tests with a fake browser session.
"""
import json
import random
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, patch

from config.settings import CatalogConfig, CategoryConfig, DelayConfig, PipelineConfig, ScraperConfig
from src.exceptions import BrowserLaunchError, CatalogError
from src.extractors.category_scraper import CategoryScraper
from src.pipeline import FurniturePipeline
from src.utils import Settler, console
from tests.fakes import FakePage, FakeSession, RecordingSleep, card

DINING = CategoryConfig(
    name="Dining",
    url="https://www.ikea.com/us/en/cat/dining-sets-25219/",
    page_count=3,
)
BEDROOM = CategoryConfig(
    name="Bedroom",
    url="https://www.ikea.com/us/en/cat/beds-bm003/",
    page_count=8,
)


class PipelineTestCase(IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)
        self.sleep = RecordingSleep()

    def tearDown(self):
        self._tmp.cleanup()

    def _config(self, categories=(DINING,), **scraper_overrides) -> PipelineConfig:
        settings = dict(categories=tuple(categories), randomize_page=False, fixed_page=1)
        settings.update(scraper_overrides)
        scraper = replace(ScraperConfig(), **settings)
        return PipelineConfig(
            scraper=scraper,
            delays=DelayConfig(),
            catalog=CatalogConfig(data_dir=self.data_dir, max_items=100),
        )

    def _pipeline(self, config: PipelineConfig, session: FakeSession, **kwargs) -> FurniturePipeline:
        settler = Settler(config.delays, sleep=self.sleep)
        return FurniturePipeline(
            config,
            session_factory=session,
            scraper=CategoryScraper(config.scraper, settler),
            settler=settler,
            **kwargs,
        )

    def _catalog(self, number: int = 1) -> dict:
        path = self.data_dir / f"furniture-catalog-{number}.json"
        return json.loads(path.read_text())


class TestPipelineRun(PipelineTestCase):
    async def test_dining_scenario_keeps_only_valid_cards(self):
        page = FakePage(
            counts={".pip-product-compact": 3},
            cards=[
                card(title="EKEDALEN table", url="https://www.ikea.com/us/en/p/ekedalen/"),
                card(title="No link", url=None),
                card(title="INGATORP table", url="https://www.ikea.com/us/en/p/ingatorp/"),
            ],
        )
        session = FakeSession(page)

        result = await self._pipeline(self._config(), session).run()

        self.assertTrue(result["success"])
        self.assertTrue(session.closed)
        data = self._catalog(1)
        self.assertEqual([i["title"] for i in data["items"]], ["EKEDALEN table", "INGATORP table"])
        self.assertEqual(data["meta"]["totalItems"], 2)
        self.assertFalse(data["meta"]["isComplete"])
        self.assertTrue(all(i["category"] == "Dining" for i in data["items"]))
        self.assertEqual(result["category_counts"], {"Dining": 2})

    async def test_browser_launch_failure_is_fatal_and_writes_nothing(self):
        session = FakeSession(error=BrowserLaunchError("Failed to launch browser: no chromium"))

        result = await self._pipeline(self._config(), session).run()

        self.assertFalse(result["success"])
        self.assertTrue(result["fatal"])
        self.assertEqual(list(self.data_dir.iterdir()), [])

    async def test_failed_category_reports_zero_and_others_continue(self):
        class FlakyPage(FakePage):
            async def goto(self, url, timeout_ms):
                await super().goto(url, timeout_ms)
                if "beds" in url:
                    self.content_failures = 1

        page = FlakyPage(
            counts={".product-card": 1},
            cards=[card(title="SONGESAND bed", url="https://www.ikea.com/us/en/p/songesand/")],
        )
        config = self._config(categories=(BEDROOM, DINING))

        result = await self._pipeline(config, FakeSession(page)).run()

        self.assertTrue(result["success"])
        self.assertEqual(result["category_counts"], {"Bedroom": 0, "Dining": 1})
        self.assertEqual(len(page.goto_calls), 4)
        # Categories run in configured order
        self.assertIn("beds", page.goto_calls[0])
        self.assertIn("dining", page.goto_calls[-1])
        self.assertEqual(self.sleep.calls.count(DelayConfig().between_categories), 1)

    async def test_no_items_leaves_catalog_untouched(self):
        page = FakePage(counts={})

        result = await self._pipeline(self._config(), FakeSession(page)).run()

        self.assertTrue(result["success"])
        self.assertEqual(result["category_counts"], {"Dining": 0})
        self.assertNotIn("catalog_number", result)
        self.assertEqual(list(self.data_dir.iterdir()), [])

    async def test_catalog_failure_still_prints_category_summary(self):
        page = FakePage(counts={".product": 1}, cards=[card()])
        pipeline = self._pipeline(self._config(), FakeSession(page))

        with patch.object(
            pipeline.store, "persist", AsyncMock(side_effect=CatalogError("disk full"))
        ), console.capture() as capture:
            result = await pipeline.run()

        self.assertFalse(result["success"])
        self.assertFalse(result["fatal"])
        self.assertEqual(result["category_counts"], {"Dining": 1})
        output = capture.get()
        self.assertIn("Items per Category", output)
        self.assertIn("Dining", output)

    async def test_fixed_page_builds_paged_url(self):
        page = FakePage(counts={".product": 1}, cards=[card()])
        config = self._config(fixed_page=2)

        await self._pipeline(config, FakeSession(page)).run()

        self.assertEqual(page.goto_calls, [f"{DINING.url}?page=2"])


class TestChoosePage(PipelineTestCase):
    def test_random_page_within_known_range(self):
        config = self._config()
        config = replace(config, scraper=replace(config.scraper, randomize_page=True))
        pipeline = self._pipeline(config, FakeSession(), rng=random.Random(7))

        pages = {pipeline.choose_page(BEDROOM) for _ in range(200)}

        self.assertTrue(pages.issubset(set(range(1, 9))))
        self.assertGreater(len(pages), 1)

    def test_fixed_page_is_clamped_to_page_count(self):
        pipeline = self._pipeline(self._config(fixed_page=10), FakeSession())
        self.assertEqual(pipeline.choose_page(DINING), 3)


class TestCategoryConfig(unittest.TestCase):
    def test_page_url(self):
        self.assertEqual(DINING.page_url(1), DINING.url)
        self.assertEqual(DINING.page_url(3), f"{DINING.url}?page=3")
        with_query = CategoryConfig(name="X", url="https://example.test/cat?sort=price")
        self.assertEqual(with_query.page_url(2), "https://example.test/cat?sort=price&page=2")
