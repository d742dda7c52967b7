from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Iterable

from app.contracts.profile_search import CandidateProfile, SearchFilters

NOT_SPECIFIED = "Not specified"

CSV_COLUMNS: tuple[tuple[str, str], ...] = (
    ("name", "Name"),
    ("job_title", "Job Title"),
    ("company", "Company"),
    ("profile_url", "LinkedIn URL"),
    ("location", "Location"),
    ("confidence_score", "Confidence Score"),
    ("snippet", "Description"),
    ("search_region", "Search Region"),
    ("search_sector", "Search Sector"),
    ("search_company_type", "Search Company Type"),
    ("search_company_size", "Search Company Size"),
)


def export_filename(now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).isoformat().replace(":", "-").replace(".", "-")
    return f"cto-search-results-{stamp}.csv"


def profiles_to_csv(profiles: Iterable[CandidateProfile], filters: SearchFilters) -> str:
    search_columns = {
        "search_region": filters.region or NOT_SPECIFIED,
        "search_sector": filters.company_sector or NOT_SPECIFIED,
        "search_company_type": filters.company_type or NOT_SPECIFIED,
        "search_company_size": filters.company_size or NOT_SPECIFIED,
    }

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for _, header in CSV_COLUMNS])
    for profile in profiles:
        row = {
            **profile.model_dump(include={"name", "job_title", "company", "profile_url", "snippet"}),
            "location": profile.location or "",
            "confidence_score": f"{profile.confidence_score:g}",
            **search_columns,
        }
        writer.writerow([row[key] for key, _ in CSV_COLUMNS])
    return buffer.getvalue()
