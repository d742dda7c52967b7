from __future__ import annotations

import logging
from typing import Any

import httpx

from app.providers.common import (
    ProviderAdapterResult,
    as_dict,
    as_list,
    map_result_item,
    now_ms,
    parse_json_or_raw,
    search_attempt,
)
from app.utils.exceptions import FetchFailure, SearchConfigurationError
from app.utils.pagination import PageWindow, collect_pages

logger = logging.getLogger(__name__)

_BASE_URL = "https://www.googleapis.com/customsearch/v1"
_PROVIDER = "google_cse"

PER_PAGE = 10
MAX_RESULTS = 100
FIRST_START = 1


async def _fetch_page(
    client: httpx.AsyncClient,
    *,
    api_key: str,
    cse_id: str,
    query: str,
    num: int,
    start: int | None,
    page_attempts: list[dict[str, Any]],
) -> list[dict[str, str]]:
    params: dict[str, Any] = {
        "key": api_key,
        "cx": cse_id,
        "q": query,
        "num": num,
        "safe": "active",
        "lr": "lang_en",
    }
    if start is not None:
        params["start"] = start

    start_ms = now_ms()
    try:
        response = await client.get(_BASE_URL, params=params)
    except httpx.HTTPError as exc:
        page_attempts.append(
            {"start": start, "status": "failed", "error": type(exc).__name__, "duration_ms": now_ms() - start_ms}
        )
        raise FetchFailure(_PROVIDER, f"transport error: {type(exc).__name__}", start=start) from exc

    body = parse_json_or_raw(response.text, response.json)
    if response.status_code >= 400 or "raw" in body:
        page_attempts.append(
            {
                "start": start,
                "status": "failed",
                "http_status": response.status_code,
                "duration_ms": now_ms() - start_ms,
                "raw_response": body,
            }
        )
        message = "malformed response body" if response.status_code < 400 else f"HTTP {response.status_code}"
        raise FetchFailure(_PROVIDER, message, http_status=response.status_code, start=start)

    items = [map_result_item(as_dict(item)) for item in as_list(body.get("items"))]
    page_attempts.append(
        {
            "start": start,
            "status": "found" if items else "not_found",
            "http_status": response.status_code,
            "item_count": len(items),
            "duration_ms": now_ms() - start_ms,
        }
    )
    return items


async def search_profiles(
    *,
    api_key: str | None,
    cse_id: str | None,
    query: str,
    page_mode: str = "exhaustive",
    num_results: int = PER_PAGE,
    page_delay_seconds: float = 0.1,
    max_duration_seconds: float | None = None,
    timeout_seconds: float = 30.0,
) -> ProviderAdapterResult:
    missing = [name for name, value in (("GOOGLE_API_KEY", api_key), ("GOOGLE_CSE_ID", cse_id)) if not value]
    if missing:
        raise SearchConfigurationError(_PROVIDER, missing)

    page_attempts: list[dict[str, Any]] = []
    start_ms = now_ms()
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        if page_mode == "bounded":
            items = await _fetch_page(
                client,
                api_key=api_key,
                cse_id=cse_id,
                query=query,
                num=max(1, min(num_results, PER_PAGE)),
                start=None,
                page_attempts=page_attempts,
            )
            pages_fetched, stop_reason = 1, "bounded"
        else:
            logger.info("Starting paginated search", extra={"provider": _PROVIDER})

            async def _page(start: int, per_page: int) -> list[dict[str, str]]:
                return await _fetch_page(
                    client,
                    api_key=api_key,
                    cse_id=cse_id,
                    query=query,
                    num=per_page,
                    start=start,
                    page_attempts=page_attempts,
                )

            collection = await collect_pages(
                _page,
                PageWindow(
                    first_start=FIRST_START,
                    per_page=PER_PAGE,
                    max_results=MAX_RESULTS,
                    delay_seconds=page_delay_seconds,
                    max_duration_seconds=max_duration_seconds,
                ),
                provider=_PROVIDER,
            )
            items, pages_fetched, stop_reason = collection.items, collection.pages_fetched, collection.stop_reason
            logger.info(
                "Pagination complete",
                extra={"provider": _PROVIDER, "item_count": len(items), "stop_reason": stop_reason},
            )

    return {
        "attempt": search_attempt(
            provider=_PROVIDER,
            page_mode=page_mode,
            items=items,
            pages_fetched=pages_fetched,
            stop_reason=stop_reason,
            start_ms=start_ms,
            page_attempts=page_attempts,
        ),
        "mapped": {"items": items, "result_count": len(items)},
    }
