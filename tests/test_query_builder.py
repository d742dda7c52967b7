from __future__ import annotations

from app.contracts.profile_search import SearchFilters
from app.services.query_builder import (
    EXCLUDED_TERMS,
    build_profile_query,
    build_search_context,
    describe_filters,
    title_terms,
)

_EXCLUSIONS = '-"Intern" -"Student" -"Former" -"Ex-" -"Previous" -"Consultant"'


def test_query_without_filters_has_namespace_titles_and_exclusions_only():
    query = build_profile_query(SearchFilters())

    assert query.startswith('site:linkedin.com/in/ ("CTO" OR "Chief Technology Officer" OR ')
    assert query.endswith(_EXCLUSIONS)
    assert '"Head of Tech")' in query
    assert query.count("(") == 1


def test_query_is_deterministic():
    filters = SearchFilters(region="Berlin", company_sector="fintech", company_type="startup")

    assert build_profile_query(filters) == build_profile_query(filters)
    assert build_profile_query(filters) == build_profile_query(
        SearchFilters(region="Berlin", company_sector="fintech", company_type="startup")
    )


def test_clause_order_is_namespace_titles_region_sector_type_exclusions():
    query = build_profile_query(SearchFilters(region="Berlin", company_sector="fintech", company_type="startup"))

    namespace = query.index("site:linkedin.com/in/")
    titles = query.index('("CTO"')
    region = query.index('"Berlin"')
    sector = query.index('("fintech" OR "financial technology" OR "finance" OR "banking")')
    company_type = query.index('("startup" OR "early stage" OR "seed")')
    exclusions = query.index('-"Intern"')
    assert namespace < titles < region < sector < company_type < exclusions


def test_each_filter_only_changes_its_own_clause():
    base = build_profile_query(SearchFilters())
    with_region = build_profile_query(SearchFilters(region="Toronto"))

    assert with_region.replace(' "Toronto"', "", 1) == base
    assert '"Toronto"' not in base


def test_unset_filters_never_appear():
    query = build_profile_query(SearchFilters(company_size="51-200"))

    assert "51-200" not in query
    assert query == build_profile_query(SearchFilters())


def test_sector_lookup_is_case_insensitive():
    query = build_profile_query(SearchFilters(company_sector="AI/ML"))

    assert '("AI" OR "ML" OR "artificial intelligence" OR "machine learning")' in query


def test_unknown_sector_and_type_fall_back_to_literal():
    query = build_profile_query(SearchFilters(company_sector="agritech", company_type="cooperative"))

    assert '("agritech")' in query
    assert '("cooperative")' in query


def test_company_type_table():
    query = build_profile_query(SearchFilters(company_type="Public"))

    assert '("public company" OR "NYSE" OR "NASDAQ" OR "publicly traded")' in query


def test_job_title_uses_synonyms_or_literal():
    cfo = title_terms(SearchFilters(job_title="cfo"))
    literal = title_terms(SearchFilters(job_title="Head of Data"))

    assert cfo[0] == "CFO"
    assert "Chief Financial Officer" in cfo
    assert "CTO" not in cfo
    assert literal == ["Head of Data"]


def test_additional_titles_are_appended_without_duplicates():
    terms = title_terms(SearchFilters(additional_titles=["Principal Engineer", "cto"]))

    assert terms[-1] == "Principal Engineer"
    assert [term.lower() for term in terms].count("cto") == 1


def test_exclusions_cover_fixed_terms():
    query = build_profile_query(SearchFilters())

    for term in EXCLUDED_TERMS:
        assert f'-"{term}"' in query


def test_blank_filter_values_are_ignored():
    assert build_profile_query(SearchFilters(region="   ")) == build_profile_query(SearchFilters())


def test_search_context_and_summary():
    filters = SearchFilters(region="San Francisco", company_sector="software", company_size="11-50")

    assert build_search_context(filters) == "San Francisco software"
    assert describe_filters(filters) == "San Francisco software 11-50"
    assert describe_filters(SearchFilters()) == "All CTOs"
