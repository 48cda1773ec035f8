"""
Bounded concurrent fetching.

BoundedFetcher runs one async fetch per item while never letting more than
``concurrency`` of them be in flight. One fetcher owns one semaphore, so
several ``run()`` calls issued together (e.g. the profile and the photo
stream of a batch) share the same limit.

Failures never escape ``run()``: each item ends up in a FetchOutcome whose
``status`` is one of ``ok``, ``not_found`` or ``failed``. Interpreting
them is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, Literal, Optional, TypeVar

from foosrank.scrape.base import NotFoundError, ScrapeError

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ValueT = TypeVar("ValueT")

FetchStatus = Literal["ok", "not_found", "failed"]


@dataclass
class FetchOutcome(Generic[ItemT, ValueT]):
    """Result of fetching one item."""

    item: ItemT
    status: FetchStatus
    value: Optional[ValueT] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def not_found(self) -> bool:
        return self.status == "not_found"

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class BoundedFetcher:
    """
    Fan-out executor with a hard cap on in-flight fetches.

    Usage:
        fetcher = BoundedFetcher(concurrency=10)
        profiles, images = await asyncio.gather(
            fetcher.run(ids, extractor.fetch_profile),
            fetcher.run(ids, extractor.fetch_image),
        )
    """

    def __init__(self, concurrency: int):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self.in_flight = 0
        self.peak_in_flight = 0

    async def run(
        self,
        items: Iterable[ItemT],
        fetch: Callable[[ItemT], Awaitable[ValueT]],
    ) -> list[FetchOutcome[ItemT, ValueT]]:
        """Fetch every item; one outcome per item, in input order."""
        return list(await asyncio.gather(*(self._attempt(item, fetch) for item in items)))

    async def _attempt(
        self,
        item: ItemT,
        fetch: Callable[[ItemT], Awaitable[ValueT]],
    ) -> FetchOutcome[ItemT, ValueT]:
        async with self._semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                value = await fetch(item)
            except NotFoundError as exc:
                return FetchOutcome(item, "not_found", error=exc)
            except ScrapeError as exc:
                return FetchOutcome(item, "failed", error=exc)
            except Exception as exc:
                logger.warning("Unexpected error fetching %r: %s", item, exc, exc_info=True)
                return FetchOutcome(item, "failed", error=exc)
            finally:
                self.in_flight -= 1
        return FetchOutcome(item, "ok", value=value)
