# app/utils/pagination.py — Exhaustive page collection for search backends

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from app.utils.exceptions import FetchFailure

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int, int], Awaitable[list[dict[str, Any]]]]


@dataclass(frozen=True)
class PageWindow:
    first_start: int
    per_page: int = 10
    max_results: int = 100
    delay_seconds: float = 0.1
    max_duration_seconds: float | None = None


@dataclass
class PageCollection:
    items: list[dict[str, Any]] = field(default_factory=list)
    pages_fetched: int = 0
    stop_reason: str = "not_started"


async def collect_pages(
    fetch_page: PageFetcher,
    window: PageWindow,
    *,
    provider: str,
    clock: Callable[[], float] = time.monotonic,
) -> PageCollection:
    """Fetch successive pages until the results run out.

    Stops on an empty or short page, once the offset reaches the result
    ceiling, when the deadline passes, or when a page raises FetchFailure.
    Items gathered before the stop are always returned.
    """
    collection = PageCollection()
    start = window.first_start
    started_at = clock()

    while True:
        if collection.pages_fetched:
            if (
                window.max_duration_seconds is not None
                and clock() - started_at >= window.max_duration_seconds
            ):
                collection.stop_reason = "deadline"
                logger.warning(
                    "Search deadline reached, returning partial results",
                    extra={"provider": provider, "item_count": len(collection.items)},
                )
                break
            await asyncio.sleep(window.delay_seconds)

        try:
            page_items = await fetch_page(start, window.per_page)
        except FetchFailure as exc:
            collection.stop_reason = "fetch_failed"
            logger.warning(
                "Page fetch failed, ending pagination",
                extra={"provider": provider, "start": start, "http_status": exc.http_status},
            )
            break

        collection.pages_fetched += 1
        if not page_items:
            collection.stop_reason = "empty_page"
            break

        collection.items.extend(page_items)
        logger.info(
            "Fetched result page",
            extra={"provider": provider, "start": start, "page_count": len(page_items), "total": len(collection.items)},
        )

        if len(page_items) < window.per_page:
            collection.stop_reason = "short_page"
            break

        start += window.per_page
        if start - window.first_start >= window.max_results:
            collection.stop_reason = "result_ceiling"
            logger.info("Reached backend result ceiling", extra={"provider": provider, "max_results": window.max_results})
            break

    return collection
