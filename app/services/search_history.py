from __future__ import annotations

import threading
from collections import deque

from app.contracts.profile_search import SearchHistoryRecord

MAX_HISTORY_PAGE = 50


class SearchHistory:
    """Newest-first, size-capped log of completed searches."""

    def __init__(self, max_records: int = 100):
        self._records: deque[SearchHistoryRecord] = deque(maxlen=max(max_records, 1))
        self._lock = threading.Lock()

    def record(self, entry: SearchHistoryRecord) -> None:
        with self._lock:
            self._records.appendleft(entry)

    def recent(self, limit: int = 10) -> list[SearchHistoryRecord]:
        limit = max(1, min(limit, MAX_HISTORY_PAGE))
        with self._lock:
            return list(self._records)[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
