from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from app.config import get_settings
from app.contracts.profile_search import (
    ProfileSearchOutput,
    RawResultItem,
    SearchFilters,
    SearchHistoryRecord,
    SourceBackend,
)
from app.providers import google_cse, serpapi
from app.providers.common import ProviderAdapterResult, as_dict, as_list
from app.services.profile_extraction import ProfileExtractor, scoring_for
from app.services.query_builder import build_profile_query, build_search_context, describe_filters
from app.services.search_history import SearchHistory
from app.utils.exceptions import FetchFailure, SearchConfigurationError

logger = logging.getLogger(__name__)

OPERATION_ID = "person.search.linkedin_profiles"

BACKEND_LABELS: dict[SourceBackend, str] = {
    SourceBackend.PRIMARY: "Google Search",
    SourceBackend.ALTERNATE: "SerpAPI",
}


async def _run_backend(*, backend: SourceBackend, query: str, filters: SearchFilters) -> ProviderAdapterResult:
    settings = get_settings()
    if backend == SourceBackend.PRIMARY:
        return await google_cse.search_profiles(
            api_key=settings.google_api_key,
            cse_id=settings.google_cse_id,
            query=query,
            page_mode=filters.page_mode,
            num_results=filters.num_results,
            page_delay_seconds=settings.google_page_delay_seconds,
            max_duration_seconds=settings.search_max_duration_seconds,
            timeout_seconds=settings.search_timeout_seconds,
        )
    return await serpapi.search_profiles(
        api_key=settings.serpapi_key,
        query=query,
        page_mode=filters.page_mode,
        num_results=filters.num_results,
        page_delay_seconds=settings.serpapi_page_delay_seconds,
        max_duration_seconds=settings.search_max_duration_seconds,
        timeout_seconds=settings.search_timeout_seconds,
    )


def history_label(filters: SearchFilters, backend: SourceBackend) -> str:
    summary = describe_filters(filters)
    return f"{summary} (SerpAPI)" if backend == SourceBackend.ALTERNATE else summary


async def execute_profile_search(
    *,
    filters: SearchFilters,
    backend: SourceBackend = SourceBackend.PRIMARY,
    history: SearchHistory | None = None,
    scoring: str | None = None,
) -> dict[str, Any]:
    run_id = str(uuid.uuid4())
    attempts: list[dict[str, Any]] = []

    try:
        strategy = scoring_for(backend, scoring)
    except ValueError as exc:
        return {
            "run_id": run_id,
            "operation_id": OPERATION_ID,
            "status": "failed",
            "provider_attempts": attempts,
            "error": {"code": "invalid_scoring_strategy", "message": str(exc)},
        }

    query = build_profile_query(filters)
    search_context = build_search_context(filters)
    started = time.perf_counter()

    try:
        provider_result = await _run_backend(backend=backend, query=query, filters=filters)
    except SearchConfigurationError as exc:
        logger.warning("Search backend not configured", extra={"provider": exc.provider, "missing": exc.missing})
        return {
            "run_id": run_id,
            "operation_id": OPERATION_ID,
            "status": "failed",
            "provider_attempts": attempts,
            "error": {"code": "missing_provider_credentials", "message": str(exc)},
        }
    except FetchFailure as exc:
        logger.warning("Search page fetch failed", extra={"provider": exc.provider, "http_status": exc.http_status})
        attempts.append(
            {"provider": exc.provider, "action": "profile_search", "status": "failed", "http_status": exc.http_status}
        )
        return {
            "run_id": run_id,
            "operation_id": OPERATION_ID,
            "status": "failed",
            "provider_attempts": attempts,
            "error": {"code": "fetch_failed", "message": str(exc)},
        }

    attempt = as_dict(provider_result.get("attempt"))
    attempts.append(attempt)
    mapped = as_dict(provider_result.get("mapped"))
    items = [RawResultItem.model_validate(as_dict(item)) for item in as_list(mapped.get("items"))]

    extractor = ProfileExtractor(strategy, backend)
    profiles = extractor.extract_profiles(items, search_context)
    search_time = round(time.perf_counter() - started, 3)

    summary = history_label(filters, backend)
    output = ProfileSearchOutput(
        query=query,
        summary=summary,
        search_context=search_context,
        source_backend=backend,
        scoring=strategy.name,
        profiles=profiles,
        result_count=len(profiles),
        linkedin_urls=[profile.profile_url for profile in profiles],
        search_time=search_time,
        pages_fetched=int(attempt.get("pages_fetched") or 0),
        stop_reason=str(attempt.get("stop_reason") or ""),
    )

    if history is not None:
        history.record(
            SearchHistoryRecord(
                query=summary,
                backend=backend,
                region=filters.region,
                company_sector=filters.company_sector,
                company_type=filters.company_type,
                company_size=filters.company_size,
                results_count=len(profiles),
                search_time=search_time,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
        )

    logger.info(
        "Profile search complete",
        extra={
            "run_id": run_id,
            "backend": backend.value,
            "raw_item_count": len(items),
            "profile_count": len(profiles),
            "search_time": search_time,
        },
    )

    return {
        "run_id": run_id,
        "operation_id": OPERATION_ID,
        "status": "found" if profiles else "not_found",
        "output": output.model_dump(mode="json"),
        "provider_attempts": attempts,
    }
