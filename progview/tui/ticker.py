"""Periodic frame requests."""

import asyncio
from typing import AsyncIterator

from .events import Tick


async def ticker(period: float) -> AsyncIterator[Tick]:
    """Yield a `Tick` every `period` seconds, forever."""
    while True:
        await asyncio.sleep(period)
        yield Tick()
