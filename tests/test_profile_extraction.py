from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.contracts.profile_search import CandidateProfile, RawResultItem, SearchFilters, SourceBackend
from app.services.profile_extraction import (
    KeywordScoring,
    ProfileExtractor,
    RelevanceScoring,
    extract_company,
    extract_job_title,
    extract_location,
    extract_name,
    scoring_for,
    title_case,
)
from app.services.query_builder import build_profile_query, build_search_context

_LONG_SNIPPET = (
    "Jane Doe is the CTO at Acme Software, San Francisco area, over 100 characters of additional padding "
    "text here to cross the completeness threshold for scoring purposes now."
)


def _item(title: str = "Jane Doe - CTO at Acme", link: str = "https://www.linkedin.com/in/jane-doe", snippet: str = "") -> RawResultItem:
    return RawResultItem(title=title, link=link, snippet=snippet)


def _profile(score: float, name: str = "Jane Doe") -> CandidateProfile:
    return CandidateProfile(
        name=name,
        job_title="Cto",
        company="Acme",
        profile_url="https://linkedin.com/in/jane",
        snippet="",
        confidence_score=score,
        source_backend=SourceBackend.PRIMARY,
    )


def test_non_profile_url_is_discarded():
    extractor = ProfileExtractor(RelevanceScoring(), SourceBackend.PRIMARY)

    assert extractor.parse_item(_item(link="https://example.com/not-a-profile")) is None
    assert extractor.parse_item(_item(link="https://www.linkedin.com/company/acme")) is None
    assert extractor.parse_item(_item(link="")) is None


@pytest.mark.parametrize(
    "link",
    [
        "https://www.linkedin.com/in/jane-doe",
        "http://linkedin.com/in/jane-doe",
        "HTTPS://WWW.LinkedIn.com/in/jane-doe",
    ],
)
def test_profile_url_casing_variations_are_accepted(link: str):
    extractor = ProfileExtractor(RelevanceScoring(), SourceBackend.PRIMARY)

    profiles = extractor.extract_profiles([_item(link=link, snippet=_LONG_SNIPPET)])

    assert len(profiles) == 1
    assert profiles[0].profile_url == link


def test_candidate_profile_rejects_foreign_urls():
    with pytest.raises(ValidationError):
        CandidateProfile(
            name="Jane",
            job_title="",
            company="",
            profile_url="https://example.com/in/jane",
            snippet="",
            confidence_score=50,
            source_backend=SourceBackend.PRIMARY,
        )


def test_extract_name_takes_leading_segment():
    assert extract_name("Jane Doe - CTO at Acme") == "Jane Doe"
    assert extract_name("Jane Doe | LinkedIn") == "Jane Doe"
    assert extract_name("Jane Doe: Engineering") == "Jane Doe"
    assert extract_name("- CTO") == ""


def test_extract_job_title_uses_list_order_and_title_case():
    assert extract_job_title("Sam Lee - Head of Engineering", "Former CTO of a startup") == "Cto"
    assert extract_job_title("Sam Lee - VP Engineering at Foo", "") == "Vp Engineering"
    assert extract_job_title("Sam Lee", "Chief Technical Officer at Bar") == "Chief Technical Officer"


def test_extract_job_title_ignores_titles_inside_words():
    assert extract_job_title("Sam Lee - Director of Sales", "Sales director at Foo") == ""


def test_extract_company_pattern_priority():
    assert extract_company("Jane Doe - CTO at Acme", _LONG_SNIPPET) == "Acme"
    assert extract_company("Jane Doe - CTO @ Widgets Inc", "Building things.") == "Widgets Inc"
    assert extract_company("Jane Doe - CTO", "") == "Jane Doe"
    assert extract_company("Jane", "Builder.") == ""


def test_extract_company_does_not_match_inside_words():
    assert extract_company("Jane Doe", "Works on format conversion @ Foo Labs") == "Foo Labs"


def test_extract_location_heuristics():
    assert extract_location("Engineering leader based in Austin, Texas.") == "Austin, Texas"
    assert extract_location("Working remotely. Portland, OR and beyond") == "Portland, OR"
    assert extract_location("Greater Boston Area tech leader") == "Boston Area"
    assert extract_location("We ship from tokyo.") == "tokyo"
    assert extract_location("no location here.") is None
    assert extract_location("") is None


def test_title_case():
    assert title_case("vp of engineering") == "Vp Of Engineering"
    assert title_case("ACME corp") == "Acme Corp"
    assert title_case("") == ""


def test_relevance_scoring_components():
    scoring = RelevanceScoring()

    assert scoring.score(job_title="Cto", company="Acme", search_context="", snippet="short") == 60.0
    assert scoring.score(job_title="", company="", search_context="", snippet="x" * 101) == 10.0
    assert (
        scoring.score(job_title="Cto", company="Berlin Fintech", search_context="Berlin fintech", snippet="")
        == 90.0
    )
    assert (
        scoring.score(job_title="", company="", search_context="Berlin fintech", snippet="Berlin fintech founder")
        == 20.0
    )


def test_relevance_company_match_takes_priority_over_snippet_match():
    scoring = RelevanceScoring()

    score = scoring.score(
        job_title="", company="Berlin Fintech", search_context="berlin fintech", snippet="berlin fintech"
    )

    assert score == 30.0


def test_relevance_scoring_maximum_is_100():
    scoring = RelevanceScoring()

    score = scoring.score(job_title="Cto", company="Paris Saas", search_context="paris saas", snippet="y" * 300)

    assert score == 100.0


def test_keyword_scoring_components():
    scoring = KeywordScoring()

    score = scoring.score(
        job_title="Cto",
        company="Acme",
        search_context="San Francisco software",
        snippet="CTO in San Francisco building software",
    )

    assert score == 94.0


def test_keyword_scoring_penalises_false_positives_and_clamps_at_zero():
    scoring = KeywordScoring()

    penalised = scoring.score(job_title="Vp Engineering", company="Acme", search_context="", snippet="Former VP")
    floored = scoring.score(
        job_title="", company="", search_context="", snippet="former intern student previous ex-cto"
    )

    assert penalised == 30.0
    assert floored == 0.0


def test_keyword_scoring_clamps_at_100():
    scoring = KeywordScoring()
    words = "alpha bravo charlie delta echoes foxtrot golfer hotel india juliet"

    score = scoring.score(job_title="Cto", company="Acme", search_context=words, snippet=words)

    assert score == 100.0


@pytest.mark.parametrize("scoring", [RelevanceScoring(), KeywordScoring()])
@pytest.mark.parametrize(
    ("title", "snippet", "context"),
    [
        ("", "", ""),
        ("Jane - CTO at Acme", _LONG_SNIPPET, "San Francisco software"),
        ("-|:", "former intern student previous ex-" * 5, "x"),
        ("CTO CTO", "cto " * 200, "cto " * 50),
        ("éè 中文 - Head of Tech", "\n\t@ ,,- at", "ü"),
    ],
)
def test_scores_are_bounded_for_both_strategies(scoring, title: str, snippet: str, context: str):
    extractor = ProfileExtractor(scoring, SourceBackend.PRIMARY)

    profile = extractor.parse_item(_item(title=title, snippet=snippet), context)

    assert profile is not None
    assert 0.0 <= profile.confidence_score <= 100.0


def test_relevance_threshold_is_inclusive_at_twenty():
    extractor = ProfileExtractor(RelevanceScoring(), SourceBackend.PRIMARY)

    assert extractor.is_valid(_profile(20.0)) is True
    assert extractor.is_valid(_profile(19.99)) is False


def test_keyword_threshold_is_strictly_above_ten():
    extractor = ProfileExtractor(KeywordScoring(), SourceBackend.ALTERNATE)

    assert extractor.is_valid(_profile(10.0)) is False
    assert extractor.is_valid(_profile(10.5)) is True


def test_short_names_are_dropped():
    extractor = ProfileExtractor(RelevanceScoring(), SourceBackend.PRIMARY)

    assert extractor.is_valid(_profile(80.0, name="J")) is False
    assert extractor.is_valid(_profile(80.0, name="Jo")) is True


def test_extract_profiles_preserves_order_and_filters():
    extractor = ProfileExtractor(RelevanceScoring(), SourceBackend.PRIMARY)
    items = [
        _item(title="Ann Smith - CTO at Foo", link="https://linkedin.com/in/ann"),
        _item(title="Bob Jones - CTO at Bar", link="https://example.com/bob"),
        _item(title="Cat Brown - Head of Engineering at Baz", link="https://linkedin.com/in/cat"),
        _item(title="Dan - gardener", link="https://linkedin.com/in/dan", snippet="Loves plants"),
    ]

    profiles = extractor.extract_profiles(items, "")

    assert [profile.name for profile in profiles] == ["Ann Smith", "Cat Brown"]
    assert all(profile.sources == ["Google Custom Search"] for profile in profiles)


def test_scoring_for_defaults_per_backend():
    assert scoring_for(SourceBackend.PRIMARY).name == "relevance"
    assert scoring_for(SourceBackend.ALTERNATE).name == "keyword"
    assert scoring_for(SourceBackend.PRIMARY, "keyword").name == "keyword"
    with pytest.raises(ValueError):
        scoring_for(SourceBackend.PRIMARY, "magic")


def test_end_to_end_query_and_extraction():
    filters = SearchFilters(region="San Francisco", company_sector="software")

    query = build_profile_query(filters)
    assert "site:linkedin.com/in/" in query
    assert '"CTO"' in query
    assert '"San Francisco"' in query
    assert '"SaaS"' in query

    context = build_search_context(filters)
    assert context == "San Francisco software"

    extractor = ProfileExtractor(RelevanceScoring(), SourceBackend.PRIMARY)
    profiles = extractor.extract_profiles(
        [
            RawResultItem(
                title="Jane Doe - CTO at Acme",
                link="https://linkedin.com/in/janedoe",
                snippet=_LONG_SNIPPET,
            )
        ],
        context,
    )

    assert len(profiles) == 1
    profile = profiles[0]
    assert profile.name == "Jane Doe"
    assert profile.job_title == "Cto"
    assert profile.company == "Acme"
    assert profile.location == "San Francisco"
    assert profile.confidence_score >= 20
    assert profile.confidence_score == 70.0
