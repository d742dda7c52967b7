from __future__ import annotations

import re
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROFILE_URL_PATTERN = re.compile(r"https?://(?:www\.)?linkedin\.com/in/[\w\-]+", re.IGNORECASE)


def is_profile_url(value: str | None) -> bool:
    if not isinstance(value, str):
        return False
    return PROFILE_URL_PATTERN.match(value.strip()) is not None


class SourceBackend(str, Enum):
    PRIMARY = "primary"
    ALTERNATE = "alternate"


class SearchFilters(BaseModel):
    job_title: str | None = None
    region: str | None = None
    company_sector: str | None = None
    company_type: str | None = None
    company_size: str | None = None
    additional_titles: tuple[str, ...] = ()
    page_mode: Literal["bounded", "exhaustive"] = "exhaustive"
    num_results: int = Field(default=10, ge=1, le=100)

    model_config = ConfigDict(frozen=True)

    @field_validator("job_title", "region", "company_sector", "company_type", "company_size", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            cleaned = value.strip()
            return cleaned or None
        return value

    @field_validator("additional_titles", mode="before")
    @classmethod
    def _clean_titles(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
        return value


class RawResultItem(BaseModel):
    title: str = ""
    link: str = ""
    snippet: str = ""

    @field_validator("title", "link", "snippet", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class CandidateProfile(BaseModel):
    name: str
    job_title: str
    company: str
    profile_url: str
    snippet: str
    location: str | None = None
    confidence_score: float = Field(ge=0.0, le=100.0)
    source_backend: SourceBackend
    sources: list[str] = Field(default_factory=list)

    @field_validator("profile_url")
    @classmethod
    def _require_profile_url(cls, value: str) -> str:
        if not is_profile_url(value):
            raise ValueError("profile_url must be a linkedin.com/in/ profile link")
        return value


class SearchHistoryRecord(BaseModel):
    query: str
    backend: SourceBackend
    region: str | None = None
    company_sector: str | None = None
    company_type: str | None = None
    company_size: str | None = None
    results_count: int
    search_time: float
    timestamp: str


class ProfileSearchOutput(BaseModel):
    query: str
    summary: str
    search_context: str
    source_backend: SourceBackend
    scoring: str
    profiles: list[CandidateProfile]
    result_count: int
    linkedin_urls: list[str]
    search_time: float
    pages_fetched: int
    stop_reason: str
