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

_BASE_URL = "https://serpapi.com/search"
_PROVIDER = "serpapi"

PER_PAGE = 10
MAX_RESULTS = 100
FIRST_START = 0

_NO_RESULTS_MARKER = "hasn't returned any results"


async def _fetch_page(
    client: httpx.AsyncClient,
    *,
    api_key: str,
    query: str,
    num: int,
    start: int | None,
    page_attempts: list[dict[str, Any]],
) -> list[dict[str, str]]:
    params: dict[str, Any] = {
        "api_key": api_key,
        "engine": "google",
        "q": query,
        "num": num,
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
    # SerpAPI reports some failures (bad key, exhausted plan) as 200 with an "error" field.
    provider_error = body.get("error") if isinstance(body.get("error"), str) else None
    if provider_error and _NO_RESULTS_MARKER in provider_error.lower():
        provider_error = None
    if response.status_code >= 400 or "raw" in body or provider_error:
        page_attempts.append(
            {
                "start": start,
                "status": "failed",
                "http_status": response.status_code,
                "provider_status": provider_error,
                "duration_ms": now_ms() - start_ms,
                "raw_response": body,
            }
        )
        if response.status_code >= 400:
            message = f"HTTP {response.status_code}"
        elif provider_error:
            message = provider_error
        else:
            message = "malformed response body"
        raise FetchFailure(_PROVIDER, message, http_status=response.status_code, start=start)

    items = [map_result_item(as_dict(item)) for item in as_list(body.get("organic_results"))]
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
    query: str,
    page_mode: str = "exhaustive",
    num_results: int = PER_PAGE,
    page_delay_seconds: float = 1.0,
    max_duration_seconds: float | None = None,
    timeout_seconds: float = 30.0,
) -> ProviderAdapterResult:
    if not api_key:
        raise SearchConfigurationError(_PROVIDER, ["SERPAPI_KEY"])

    page_attempts: list[dict[str, Any]] = []
    start_ms = now_ms()
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        if page_mode == "bounded":
            items = await _fetch_page(
                client,
                api_key=api_key,
                query=query,
                num=max(1, min(num_results, PER_PAGE)),
                start=None,
                page_attempts=page_attempts,
            )
            pages_fetched, stop_reason = 1, "bounded"
        else:

            async def _page(start: int, per_page: int) -> list[dict[str, str]]:
                return await _fetch_page(
                    client,
                    api_key=api_key,
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
                "SerpAPI pagination complete",
                extra={"provider": _PROVIDER, "pages_fetched": pages_fetched, "item_count": len(items)},
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
