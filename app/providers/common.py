from __future__ import annotations

import time
from typing import Any, TypedDict


class ProviderAdapterResult(TypedDict):
    attempt: dict[str, Any]
    mapped: Any


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_json_or_raw(text: str, parser: Any) -> dict[str, Any]:
    try:
        parsed = parser()
        if isinstance(parsed, dict):
            return parsed
        return {"value": parsed}
    except Exception:  # noqa: BLE001
        return {"raw": text}


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def as_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def map_result_item(raw: dict[str, Any]) -> dict[str, str]:
    return {
        "title": as_text(raw.get("title")),
        "link": as_text(raw.get("link")),
        "snippet": as_text(raw.get("snippet")),
    }


def search_attempt(
    *,
    provider: str,
    page_mode: str,
    items: list[dict[str, Any]],
    pages_fetched: int,
    stop_reason: str,
    start_ms: int,
    page_attempts: list[dict[str, Any]],
) -> dict[str, Any]:
    return {
        "provider": provider,
        "action": "profile_search",
        "status": "found" if items else "not_found",
        "page_mode": page_mode,
        "pages_fetched": pages_fetched,
        "stop_reason": stop_reason,
        "duration_ms": now_ms() - start_ms,
        "page_attempts": page_attempts,
    }
