from __future__ import annotations

from app.contracts.profile_search import SearchHistoryRecord, SourceBackend
from app.services.search_history import SearchHistory


def _record(query: str, results_count: int = 1) -> SearchHistoryRecord:
    return SearchHistoryRecord(
        query=query,
        backend=SourceBackend.PRIMARY,
        results_count=results_count,
        search_time=0.5,
        timestamp="2024-01-01T00:00:00+00:00",
    )


def test_recent_is_newest_first():
    history = SearchHistory()
    for query in ("first", "second", "third"):
        history.record(_record(query))

    assert [record.query for record in history.recent()] == ["third", "second", "first"]


def test_history_is_capped_and_evicts_oldest():
    history = SearchHistory(max_records=3)
    for index in range(5):
        history.record(_record(f"q{index}"))

    assert len(history) == 3
    assert [record.query for record in history.recent()] == ["q4", "q3", "q2"]


def test_recent_limit_is_clamped():
    history = SearchHistory(max_records=100)
    for index in range(60):
        history.record(_record(f"q{index}"))

    assert len(history.recent(limit=0)) == 1
    assert len(history.recent(limit=5)) == 5
    assert len(history.recent(limit=500)) == 50
    assert len(history.recent()) == 10


def test_empty_history():
    history = SearchHistory()

    assert history.recent() == []
    assert len(history) == 0
