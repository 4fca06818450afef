"""
Fixed-delay waits that give client-side rendering time to finish.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from config.settings import DelayConfig


class Settler:
    """Single place where the pipeline pauses for a fixed amount of time."""

    def __init__(
        self,
        delays: Optional[DelayConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delays = delays or DelayConfig()
        self._sleep = sleep

    async def after_content(self) -> None:
        await self._sleep(self.delays.after_content)

    async def after_selector(self) -> None:
        await self._sleep(self.delays.after_selector)

    async def before_retry(self) -> None:
        await self._sleep(self.delays.before_retry)

    async def between_categories(self) -> None:
        await self._sleep(self.delays.between_categories)
