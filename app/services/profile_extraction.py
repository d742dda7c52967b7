"""Turn search-result snippets into scored candidate profiles.

Every helper here degrades to an empty or ``None`` field on unexpected text;
nothing in this module raises for malformed snippets.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Iterable

from app.contracts.profile_search import CandidateProfile, RawResultItem, SourceBackend, is_profile_url

# Subset of the query titles, lower-cased, in match priority order.
EXTRACTION_TITLES: tuple[str, ...] = (
    "cto",
    "chief technology officer",
    "vp technology",
    "head of technology",
    "technology director",
    "vp engineering",
    "chief technical officer",
    "head of engineering",
    "tech lead",
    "engineering director",
    "technology vp",
)

FALSE_POSITIVE_MARKERS: tuple[str, ...] = ("student", "intern", "former", "ex-", "previous")

KNOWN_CITIES: tuple[str, ...] = (
    "San Francisco",
    "New York",
    "Los Angeles",
    "Seattle",
    "Boston",
    "Austin",
    "Chicago",
    "London",
    "Berlin",
    "Paris",
    "Tokyo",
    "Singapore",
    "Toronto",
    "Vancouver",
)

SOURCE_LABELS: dict[SourceBackend, str] = {
    SourceBackend.PRIMARY: "Google Custom Search",
    SourceBackend.ALTERNATE: "SerpAPI",
}

_NAME_PATTERN = re.compile(r"^([^-|:]+)")
_TITLE_PATTERNS = tuple((title, re.compile(rf"\b{re.escape(title)}\b")) for title in EXTRACTION_TITLES)
_COMPANY_PATTERNS = (
    re.compile(r"\bat ([^|,\-\n]+)"),
    re.compile(r"@ ([^|,\-\n]+)"),
    re.compile(r"(\w+(?:\s+\w+)*) -"),
)
_LOCATION_PATTERNS = (
    re.compile(r"\b(?:based|located|from|in)\s+(?:in\s+)?([A-Z][a-z]+(?:(?:,\s*|\s+)[A-Z][a-z]+)*)"),
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?,\s*[A-Z]{2,3})\b"),
    re.compile(r"\b([A-Z][a-z]+\s+Area)\b"),
    re.compile(r"\b(" + "|".join(re.escape(city) for city in KNOWN_CITIES) + r")\b", re.IGNORECASE),
)
_WORD_PATTERN = re.compile(r"\w\S*")


def title_case(value: str) -> str:
    return _WORD_PATTERN.sub(lambda match: match.group(0)[0].upper() + match.group(0)[1:].lower(), value)


def extract_name(title: str) -> str:
    match = _NAME_PATTERN.match(title or "")
    return match.group(1).strip() if match else ""


def extract_job_title(title: str, snippet: str) -> str:
    text = f"{title} {snippet}".lower()
    for candidate, pattern in _TITLE_PATTERNS:
        if pattern.search(text):
            return title_case(candidate)
    return ""


def extract_company(title: str, snippet: str) -> str:
    segments = [(title or "").lower(), (snippet or "").lower()]
    for pattern in _COMPANY_PATTERNS:
        for segment in segments:
            match = pattern.search(segment)
            if match:
                company = match.group(1).strip()
                if company:
                    return title_case(company)
    return ""


def extract_location(snippet: str) -> str | None:
    for pattern in _LOCATION_PATTERNS:
        match = pattern.search(snippet or "")
        if match:
            return match.group(1).strip()
    return None


class ScoringStrategy(ABC):
    name: str

    @abstractmethod
    def score(self, *, job_title: str, company: str, search_context: str, snippet: str) -> float:
        ...

    @abstractmethod
    def meets_threshold(self, score: float) -> bool:
        ...


class RelevanceScoring(ScoringStrategy):
    """Title relevance, context match and completeness; retained at 20 or above."""

    name = "relevance"
    min_score = 20.0

    def score(self, *, job_title: str, company: str, search_context: str, snippet: str) -> float:
        score = 0.0
        lowered_title = job_title.lower()
        if lowered_title and any(title in lowered_title for title in EXTRACTION_TITLES):
            score += 40.0

        context = search_context.lower()
        if context and context in company.lower():
            score += 30.0
        elif context and context in snippet.lower():
            score += 20.0

        if job_title and company:
            score += 20.0
        if len(snippet) > 100:
            score += 10.0

        return min(score, 100.0)

    def meets_threshold(self, score: float) -> bool:
        return score >= self.min_score


class KeywordScoring(ScoringStrategy):
    """Keyword hits with false-positive penalties; retained strictly above 10."""

    name = "keyword"
    min_score = 10.0

    def score(self, *, job_title: str, company: str, search_context: str, snippet: str) -> float:
        score = 0.0
        lowered_title = job_title.lower()
        if job_title:
            score += 30.0
        if "cto" in lowered_title or "chief technology officer" in lowered_title:
            score += 40.0
        if company:
            score += 20.0

        lowered_snippet = snippet.lower()
        for word in search_context.lower().split():
            if len(word) > 3 and word in lowered_snippet:
                score += 2.0

        for marker in FALSE_POSITIVE_MARKERS:
            if marker in lowered_snippet:
                score -= 20.0

        return max(0.0, min(100.0, score))

    def meets_threshold(self, score: float) -> bool:
        return score > self.min_score


SCORING_STRATEGIES: dict[str, ScoringStrategy] = {
    RelevanceScoring.name: RelevanceScoring(),
    KeywordScoring.name: KeywordScoring(),
}

DEFAULT_SCORING: dict[SourceBackend, str] = {
    SourceBackend.PRIMARY: RelevanceScoring.name,
    SourceBackend.ALTERNATE: KeywordScoring.name,
}


def scoring_for(backend: SourceBackend, name: str | None = None) -> ScoringStrategy:
    key = name or DEFAULT_SCORING[backend]
    try:
        return SCORING_STRATEGIES[key]
    except KeyError:
        raise ValueError(f"Unknown scoring strategy: {key}") from None


class ProfileExtractor:
    def __init__(self, scoring: ScoringStrategy, source_backend: SourceBackend):
        self.scoring = scoring
        self.source_backend = source_backend

    def parse_item(self, item: RawResultItem, search_context: str = "") -> CandidateProfile | None:
        url = item.link.strip()
        if not is_profile_url(url):
            return None

        job_title = extract_job_title(item.title, item.snippet)
        company = extract_company(item.title, item.snippet)
        confidence = self.scoring.score(
            job_title=job_title,
            company=company,
            search_context=search_context,
            snippet=item.snippet,
        )
        return CandidateProfile(
            name=extract_name(item.title),
            job_title=job_title,
            company=company,
            profile_url=url,
            snippet=item.snippet,
            location=extract_location(item.snippet),
            confidence_score=confidence,
            source_backend=self.source_backend,
            sources=[SOURCE_LABELS[self.source_backend]],
        )

    def is_valid(self, profile: CandidateProfile) -> bool:
        return (
            len(profile.name) >= 2
            and bool(profile.profile_url)
            and self.scoring.meets_threshold(profile.confidence_score)
        )

    def extract_profiles(self, items: Iterable[RawResultItem], search_context: str = "") -> list[CandidateProfile]:
        profiles: list[CandidateProfile] = []
        for item in items:
            profile = self.parse_item(item, search_context)
            if profile is not None and self.is_valid(profile):
                profiles.append(profile)
        return profiles
