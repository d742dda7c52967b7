from __future__ import annotations

from typing import Any

import pytest

from app.utils import pagination
from app.utils.exceptions import FetchFailure
from app.utils.pagination import PageWindow, collect_pages


def _items(count: int) -> list[dict[str, Any]]:
    return [{"title": "t", "link": "l", "snippet": "s"} for _ in range(count)]


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    recorded: list[float] = []

    async def _mock_sleep(delay: float) -> None:
        recorded.append(delay)

    monkeypatch.setattr(pagination.asyncio, "sleep", _mock_sleep)
    return recorded


@pytest.mark.asyncio
async def test_zero_based_ceiling_stops_after_ten_pages(sleeps: list[float]) -> None:
    starts: list[int] = []

    async def _fetch(start: int, per_page: int) -> list[dict[str, Any]]:
        starts.append(start)
        return _items(per_page)

    collection = await collect_pages(_fetch, PageWindow(first_start=0, delay_seconds=1.0), provider="test")

    assert starts == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90]
    assert len(collection.items) == 100
    assert collection.pages_fetched == 10
    assert collection.stop_reason == "result_ceiling"
    assert sleeps == [1.0] * 9


@pytest.mark.asyncio
async def test_one_based_ceiling_stops_after_ten_pages(sleeps: list[float]) -> None:
    starts: list[int] = []

    async def _fetch(start: int, per_page: int) -> list[dict[str, Any]]:
        starts.append(start)
        return _items(per_page)

    collection = await collect_pages(_fetch, PageWindow(first_start=1), provider="test")

    assert starts[0] == 1
    assert starts[-1] == 91
    assert len(collection.items) == 100


@pytest.mark.asyncio
async def test_failure_on_first_page_returns_empty_without_raising(sleeps: list[float]) -> None:
    async def _fetch(start: int, per_page: int) -> list[dict[str, Any]]:
        raise FetchFailure("test", "HTTP 500", http_status=500, start=start)

    collection = await collect_pages(_fetch, PageWindow(first_start=0), provider="test")

    assert collection.items == []
    assert collection.pages_fetched == 0
    assert collection.stop_reason == "fetch_failed"
    assert sleeps == []


@pytest.mark.asyncio
async def test_pages_are_accumulated_in_cursor_order(sleeps: list[float]) -> None:
    pages = {0: [{"n": 1}, {"n": 2}], 2: [{"n": 3}]}

    async def _fetch(start: int, per_page: int) -> list[dict[str, Any]]:
        return pages.get(start, [])

    collection = await collect_pages(_fetch, PageWindow(first_start=0, per_page=2), provider="test")

    assert [item["n"] for item in collection.items] == [1, 2, 3]
    assert collection.stop_reason == "short_page"


@pytest.mark.asyncio
async def test_deadline_returns_partial_results(sleeps: list[float]) -> None:
    ticks = iter([0.0, 5.0, 11.0])

    async def _fetch(start: int, per_page: int) -> list[dict[str, Any]]:
        return _items(per_page)

    collection = await collect_pages(
        _fetch,
        PageWindow(first_start=0, max_duration_seconds=10.0),
        provider="test",
        clock=lambda: next(ticks),
    )

    assert collection.pages_fetched == 2
    assert len(collection.items) == 20
    assert collection.stop_reason == "deadline"
