"""
ibge_portal/core/pacing.py
Fixed-delay batching for bulk upstream walks (e.g. municipalities per state).

  FixedDelayPacer(delay_s=0.2, batch_size=1)
    async for batch in pacer.batches(items): ...

Yields items in batches of batch_size and sleeps delay_s between
consecutive batches (never before the first one or after the last one).
The sleep function is injectable so the policy can be tested without
real waiting.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Iterable, Sequence, TypeVar

log = logging.getLogger("pacing")

T = TypeVar("T")


class FixedDelayPacer:
    def __init__(self, delay_s: float = 0.2, batch_size: int = 1,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.delay_s    = delay_s
        self.batch_size = batch_size
        self._sleep     = sleep

    async def batches(self, items: Iterable[T]) -> AsyncIterator[Sequence[T]]:
        pending = list(items)
        for start in range(0, len(pending), self.batch_size):
            if start and self.delay_s:
                await self._sleep(self.delay_s)
            yield pending[start:start + self.batch_size]

    async def each(self, items: Iterable[T]) -> AsyncIterator[T]:
        async for batch in self.batches(items):
            for item in batch:
                yield item
