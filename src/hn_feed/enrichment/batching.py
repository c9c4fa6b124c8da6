"""Bounded-concurrency batch runner with all-settled semantics.

Items are processed in consecutive batches of ``batch_size``.  Within a
batch every item runs concurrently; batches run one after the other with a
short pause in between, which caps outbound connections and smooths load on
upstream sites.

A failing item never cancels its siblings: each outcome is captured in a
:class:`Settled` and the caller decides what a failure means.

Typical usage::

    batcher = Batcher(batch_size=5, delay=0.1)
    outcomes = await batcher.run(story_ids, enrich_one)
    records = [o.value if o.ok else fallback(o.item) for o in outcomes]
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


@dataclass
class Settled(Generic[ItemT, ResultT]):
    """Outcome of one item.

    Attributes:
        item: The input item.
        index: Position of ``item`` in the input sequence.
        value: Worker result on success, else ``None``.
        error: Exception raised by the worker, else ``None``.
    """

    item: ItemT
    index: int
    value: ResultT | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Batcher:
    """Run an async worker over items in sequential, concurrent batches.

    Args:
        batch_size: Items in flight at once.  Must be at least 1.
        delay: Seconds to sleep between batches (not after the last one).
    """

    def __init__(self, batch_size: int = 5, delay: float = 0.0) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.delay = max(delay, 0.0)

    async def run(
        self,
        items: Sequence[ItemT],
        worker: Callable[[ItemT, int], Awaitable[ResultT]],
    ) -> list[Settled[ItemT, ResultT]]:
        """Apply ``worker(item, index)`` to every item.

        Returns:
            One :class:`Settled` per item, in input order.
        """
        outcomes: list[Settled[ItemT, ResultT]] = []
        for start in range(0, len(items), self.batch_size):
            if start and self.delay:
                await asyncio.sleep(self.delay)
            batch = items[start : start + self.batch_size]
            results = await asyncio.gather(
                *(worker(item, start + offset) for offset, item in enumerate(batch)),
                return_exceptions=True,
            )
            for offset, (item, result) in enumerate(zip(batch, results)):
                if isinstance(result, BaseException):
                    if isinstance(result, asyncio.CancelledError):
                        raise result
                    logger.warning(
                        "enrichment: batch item %r failed: %s", item, result
                    )
                    outcomes.append(Settled(item=item, index=start + offset, error=result))
                else:
                    outcomes.append(Settled(item=item, index=start + offset, value=result))
        return outcomes
