"""Persistent, bounded search history."""

import json
import threading
from collections import Counter
from typing import Iterable, List, Optional

import ulid
from loguru import logger

from .errors import HistoryLoadError
from .models import SearchFilter, SearchHistoryEntry, utcnow
from .storage import PersistentStore


STORAGE_KEY = "universal-search-history"
MAX_HISTORY = 50


class SearchHistoryManager:
    """
    Ordered log of past queries, most recent first.

    Each query appears at most once; re-running a query moves it to the
    front. The log never holds more than MAX_HISTORY entries. Every
    mutation is written through to the store, and all access goes through
    one lock so the manager can be shared between threads.
    """

    def __init__(self, store: PersistentStore, storage_key: str = STORAGE_KEY):
        self.store = store
        self.storage_key = storage_key
        self._history: List[SearchHistoryEntry] = []
        self._lock = threading.RLock()
        self._load_history()

    def _load_history(self) -> None:
        with self._lock:
            try:
                stored = self.store.load(self.storage_key)
                self._history = self._decode(stored) if stored else []
            except Exception as e:
                logger.warning(f"Failed to load search history: {e}")
                self._history = []
            logger.debug(f"Loaded {len(self._history)} history entries")

    @staticmethod
    def _decode(payload: str) -> List[SearchHistoryEntry]:
        try:
            items = json.loads(payload)
        except json.JSONDecodeError as e:
            raise HistoryLoadError(f"invalid JSON: {e}") from e
        if not isinstance(items, list):
            raise HistoryLoadError(f"expected a list, got {type(items).__name__}")
        try:
            entries = [SearchHistoryEntry.from_dict(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise HistoryLoadError(f"malformed entry: {e}") from e
        return entries[:MAX_HISTORY]

    def _save_history(self) -> None:
        payload = json.dumps([entry.to_dict() for entry in self._history], ensure_ascii=False)
        try:
            self.store.save(self.storage_key, payload)
        except Exception as e:
            # In-memory history stays authoritative
            logger.warning(f"Failed to save search history: {e}")

    def add_search(
        self,
        query: str,
        results_count: int,
        filters: Iterable[SearchFilter] = (),
    ) -> SearchHistoryEntry:
        """Record a query at the front, replacing any earlier identical query."""
        entry = SearchHistoryEntry(
            id=f"search-{ulid.ULID()}",
            query=query,
            timestamp=utcnow(),
            results_count=results_count,
            filters=tuple(filters),
        )
        with self._lock:
            self._history = [item for item in self._history if item.query != query]
            self._history.insert(0, entry)
            del self._history[MAX_HISTORY:]
            self._save_history()
        return entry

    def get_history(self) -> List[SearchHistoryEntry]:
        with self._lock:
            return list(self._history)

    def get_recent_queries(self, limit: int = 10) -> List[str]:
        with self._lock:
            return [item.query for item in self._history[:max(limit, 0)]]

    def get_history_by_query(self, query: str) -> Optional[SearchHistoryEntry]:
        with self._lock:
            return next((item for item in self._history if item.query == query), None)

    def clear_history(self) -> None:
        with self._lock:
            self._history = []
            self._save_history()
        logger.info("Search history cleared")

    def remove_history_item(self, entry_id: str) -> bool:
        """Remove one entry by id. Returns False if no entry had that id."""
        with self._lock:
            before = len(self._history)
            self._history = [item for item in self._history if item.id != entry_id]
            removed = len(self._history) != before
            self._save_history()
        return removed

    def get_popular_queries(self, limit: int = 5) -> List[str]:
        """Most frequent queries first; ties keep first-seen order."""
        with self._lock:
            counts = Counter(item.query for item in self._history)
        return [query for query, _ in counts.most_common()[:max(limit, 0)]]

    def get_suggestions_from_history(self, query: str, limit: int = 5) -> List[str]:
        """Past queries containing ``query`` or contained in it, case-insensitively."""
        if not query.strip():
            return self.get_recent_queries(limit)

        needle = query.lower()
        with self._lock:
            matches = [
                item.query
                for item in self._history
                if needle in item.query.lower() or item.query.lower() in needle
            ]
        return matches[:max(limit, 0)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)
