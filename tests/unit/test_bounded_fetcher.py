"""Unit tests for the bounded concurrent fetcher."""

import asyncio

import pytest

from foosrank.scrape.base import FetchError, NotFoundError, ParseError
from foosrank.scrape.fetcher import BoundedFetcher


class _Tracker:
    def __init__(self):
        self.in_flight = 0
        self.peak = 0

    async def fetch(self, item: int) -> int:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.001)
            return item * 10
        finally:
            self.in_flight -= 1


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        BoundedFetcher(0)


@pytest.mark.asyncio
async def test_never_exceeds_concurrency_limit():
    tracker = _Tracker()
    fetcher = BoundedFetcher(concurrency=3)

    outcomes = await fetcher.run(range(20), tracker.fetch)

    assert tracker.peak <= 3
    assert fetcher.peak_in_flight <= 3
    assert [o.value for o in outcomes] == [i * 10 for i in range(20)]
    assert fetcher.in_flight == 0


@pytest.mark.asyncio
async def test_parallel_runs_share_one_limit():
    tracker = _Tracker()
    fetcher = BoundedFetcher(concurrency=4)

    first, second = await asyncio.gather(
        fetcher.run(range(10), tracker.fetch),
        fetcher.run(range(10, 20), tracker.fetch),
    )

    assert tracker.peak <= 4
    assert len(first) == 10
    assert len(second) == 10


@pytest.mark.asyncio
async def test_one_outcome_per_item_despite_failures():
    async def flaky(item: int) -> str:
        if item == 2:
            raise FetchError("connection reset")
        if item == 3:
            raise NotFoundError("404")
        if item == 4:
            raise ParseError("bad page")
        if item == 5:
            raise KeyError("unexpected")
        return f"ok-{item}"

    fetcher = BoundedFetcher(concurrency=2)
    outcomes = await fetcher.run([1, 2, 3, 4, 5, 6], flaky)

    assert [o.item for o in outcomes] == [1, 2, 3, 4, 5, 6]
    assert [o.status for o in outcomes] == ["ok", "failed", "not_found", "failed", "failed", "ok"]
    assert outcomes[0].value == "ok-1"
    assert isinstance(outcomes[1].error, FetchError)
    assert outcomes[2].not_found
    assert isinstance(outcomes[4].error, KeyError)


@pytest.mark.asyncio
async def test_empty_input_returns_empty_list():
    fetcher = BoundedFetcher(concurrency=5)
    assert await fetcher.run([], lambda item: asyncio.sleep(0)) == []
