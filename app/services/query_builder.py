from __future__ import annotations

from app.contracts.profile_search import SearchFilters

PROFILE_NAMESPACE_CLAUSE = "site:linkedin.com/in/"

EXECUTIVE_TITLES: tuple[str, ...] = (
    "CTO",
    "Chief Technology Officer",
    "VP Technology",
    "Head of Technology",
    "Technology Director",
    "VP Engineering",
    "Chief Technical Officer",
    "Head of Engineering",
    "Tech Lead",
    "Engineering Director",
    "Technology VP",
    "Chief Technology",
    "VP of Technology",
    "VP of Engineering",
    "Head of Tech",
)

# Keys are lower-cased; lookups lower-case the caller's value.
TITLE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "cto": EXECUTIVE_TITLES,
    "chief technology officer": EXECUTIVE_TITLES,
    "ceo": ("CEO", "Chief Executive Officer", "Founder & CEO", "Co-Founder & CEO"),
    "cfo": ("CFO", "Chief Financial Officer", "VP Finance", "Head of Finance", "Finance Director"),
    "coo": ("COO", "Chief Operating Officer", "VP Operations", "Head of Operations"),
    "cmo": ("CMO", "Chief Marketing Officer", "VP Marketing", "Head of Marketing", "Marketing Director"),
    "cpo": ("CPO", "Chief Product Officer", "VP Product", "Head of Product"),
}

SECTOR_KEYWORDS: dict[str, tuple[str, ...]] = {
    "software": ("software", "SaaS", "tech", "technology"),
    "fintech": ("fintech", "financial technology", "finance", "banking"),
    "healthcare": ("healthcare", "medical", "health tech", "biotech"),
    "e-commerce": ("e-commerce", "ecommerce", "retail", "online"),
    "ai/ml": ("AI", "ML", "artificial intelligence", "machine learning"),
    "cybersecurity": ("cybersecurity", "security", "infosec"),
    "blockchain": ("blockchain", "crypto", "web3"),
    "iot": ("IoT", "Internet of Things", "connected devices"),
    "gaming": ("gaming", "game", "entertainment"),
}

COMPANY_TYPE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "startup": ("startup", "early stage", "seed"),
    "sme": ("SME", "medium business", "scale-up"),
    "enterprise": ("enterprise", "Fortune", "large company"),
    "unicorn": ("unicorn", "billion", "$1B"),
    "public": ("public company", "NYSE", "NASDAQ", "publicly traded"),
}

EXCLUDED_TERMS: tuple[str, ...] = ("Intern", "Student", "Former", "Ex-", "Previous", "Consultant")

DEFAULT_SUMMARY = "All CTOs"


def _quote(term: str) -> str:
    return f'"{term}"'


def _disjunction(terms: tuple[str, ...] | list[str]) -> str:
    return "(" + " OR ".join(_quote(term) for term in terms) + ")"


def _keywords_for(value: str, table: dict[str, tuple[str, ...]]) -> tuple[str, ...]:
    return table.get(value.lower(), (value,))


def title_terms(filters: SearchFilters) -> list[str]:
    base = _keywords_for(filters.job_title, TITLE_SYNONYMS) if filters.job_title else EXECUTIVE_TITLES
    terms: list[str] = []
    seen: set[str] = set()
    for term in (*base, *filters.additional_titles):
        key = term.lower()
        if key in seen:
            continue
        seen.add(key)
        terms.append(term)
    return terms


def build_profile_query(filters: SearchFilters) -> str:
    """Build the boolean search string for a set of filters.

    Clause order is fixed: namespace, titles, region, sector, company type,
    exclusions. Absent filters contribute nothing.
    """
    parts = [PROFILE_NAMESPACE_CLAUSE, _disjunction(title_terms(filters))]

    if filters.region:
        parts.append(_quote(filters.region))
    if filters.company_sector:
        parts.append(_disjunction(_keywords_for(filters.company_sector, SECTOR_KEYWORDS)))
    if filters.company_type:
        parts.append(_disjunction(_keywords_for(filters.company_type, COMPANY_TYPE_KEYWORDS)))

    parts.extend(f"-{_quote(term)}" for term in EXCLUDED_TERMS)
    return " ".join(parts)


def build_search_context(filters: SearchFilters) -> str:
    values = [filters.region, filters.company_sector, filters.company_type]
    return " ".join(value for value in values if value)


def describe_filters(filters: SearchFilters) -> str:
    values = [filters.job_title, filters.region, filters.company_sector, filters.company_type, filters.company_size]
    present = [value for value in values if value]
    return " ".join(present) if present else DEFAULT_SUMMARY
