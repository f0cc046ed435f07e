"""Tests for persistent search history and the stores behind it."""

import json
import threading
from datetime import datetime

import pytest
from loguru import logger

from unisearch.engine.errors import StorageError
from unisearch.engine.history import MAX_HISTORY, STORAGE_KEY, SearchHistoryManager
from unisearch.engine.models import SearchFilter
from unisearch.engine.storage import JsonFileStore, MemoryStore, PersistentStore


class FailingStore:
    """Store whose every call raises."""

    def load(self, key):
        raise StorageError(key, "disk on fire")

    def save(self, key, value):
        raise StorageError(key, "disk on fire")


@pytest.fixture
def warnings():
    """Collect loguru warnings emitted during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def history():
    return SearchHistoryManager(MemoryStore())


class TestAddSearch:
    """Test recording searches."""

    def test_newest_first(self, history):
        history.add_search("fan", 1)
        history.add_search("heater", 2)
        assert history.get_recent_queries() == ["heater", "fan"]

    def test_dedup_moves_to_front(self, history):
        history.add_search("ac unit", 3, [])
        history.add_search("fan", 1, [])
        history.add_search("ac unit", 7, [])

        entries = history.get_history()
        assert [e.query for e in entries] == ["ac unit", "fan"]
        assert entries[0].results_count == 7

    def test_dedup_is_case_sensitive(self, history):
        history.add_search("AC", 1)
        history.add_search("ac", 1)
        assert len(history) == 2

    def test_bounded_to_max_history(self, history):
        for i in range(60):
            history.add_search(f"query {i}", i)

        entries = history.get_history()
        assert len(entries) == MAX_HISTORY == 50
        assert entries[0].query == "query 59"
        assert entries[-1].query == "query 10"
        assert history.get_history_by_query("query 9") is None

    def test_filters_snapshot(self, history):
        hvac = SearchFilter(id="f1", label="category:hvac", value="hvac", category="category")
        entry = history.add_search("ac", 2, [hvac])
        assert entry.filters == (hvac,)
        assert entry.id.startswith("search-")
        assert isinstance(entry.timestamp, datetime)

    def test_get_history_returns_copy(self, history):
        history.add_search("fan", 1)
        history.get_history().clear()
        assert len(history) == 1


class TestQueries:
    """Test recency, popularity and substring lookups."""

    def test_recent_limit(self, history):
        for query in ["a", "b", "c"]:
            history.add_search(query, 0)
        assert history.get_recent_queries(2) == ["c", "b"]

    def test_popular_ties_keep_stored_order(self, history):
        for query in ["a", "b", "c", "d"]:
            history.add_search(query, 0)
        assert history.get_popular_queries(3) == ["d", "c", "b"]

    def test_popular_counts_duplicates_in_loaded_payload(self):
        payload = json.dumps([
            {"id": "1", "query": "fan", "timestamp": "2024-05-01T10:00:00Z", "resultsCount": 1, "filters": []},
            {"id": "2", "query": "heater", "timestamp": "2024-05-01T09:00:00Z", "resultsCount": 1, "filters": []},
            {"id": "3", "query": "heater", "timestamp": "2024-05-01T08:00:00Z", "resultsCount": 1, "filters": []},
        ])
        history = SearchHistoryManager(MemoryStore({STORAGE_KEY: payload}))
        assert history.get_popular_queries(2) == ["heater", "fan"]

    def test_suggestions_bidirectional(self, history):
        for query in ["portable fan", "ac", "heater"]:
            history.add_search(query, 0)
        assert history.get_suggestions_from_history("FAN") == ["portable fan"]
        # query contains the stored entry
        assert history.get_suggestions_from_history("ac unit") == ["ac"]

    def test_suggestions_blank_query_falls_back_to_recent(self, history):
        for query in ["a", "b"]:
            history.add_search(query, 0)
        assert history.get_suggestions_from_history("  ", 5) == ["b", "a"]


class TestRemoval:
    """Test clear and remove."""

    def test_remove_item(self, history):
        entry = history.add_search("fan", 1)
        history.add_search("heater", 1)
        assert history.remove_history_item(entry.id)
        assert history.get_recent_queries() == ["heater"]
        assert not history.remove_history_item("missing")

    def test_clear_persists(self):
        store = MemoryStore()
        history = SearchHistoryManager(store)
        history.add_search("fan", 1)
        history.clear_history()
        assert json.loads(store.load(STORAGE_KEY)) == []
        assert len(SearchHistoryManager(store)) == 0


class TestPersistence:
    """Test the stored format and failure handling."""

    def test_payload_format(self):
        store = MemoryStore()
        history = SearchHistoryManager(store)
        history.add_search("fan", 4, [SearchFilter(id="f1", label="type:fan", value="fan", category="type")])

        stored = json.loads(store.load(STORAGE_KEY))
        assert len(stored) == 1
        assert set(stored[0]) == {"id", "query", "timestamp", "resultsCount", "filters"}
        assert stored[0]["resultsCount"] == 4
        assert stored[0]["filters"][0]["value"] == "fan"
        datetime.fromisoformat(stored[0]["timestamp"])

    def test_reload_restores_entries(self, tmp_path):
        store = JsonFileStore(tmp_path)
        first = SearchHistoryManager(store)
        first.add_search("fan", 1)
        first.add_search("heater", 2)

        second = SearchHistoryManager(JsonFileStore(tmp_path))
        assert second.get_recent_queries() == ["heater", "fan"]
        assert second.get_history()[0].timestamp == first.get_history()[0].timestamp

    def test_loads_javascript_timestamps(self):
        payload = json.dumps([{
            "id": "search-1714557600000",
            "query": "fan",
            "timestamp": "2024-05-01T10:00:00.000Z",
            "resultsCount": 2,
            "filters": [],
        }])
        history = SearchHistoryManager(MemoryStore({STORAGE_KEY: payload}))
        entry = history.get_history()[0]
        assert entry.timestamp.year == 2024
        assert entry.timestamp.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize("payload", [
        "not json",
        '{"query": "fan"}',
        '[{"query": "fan"}]',
        '[{"id": "1", "query": "fan", "timestamp": "yesterday"}]',
    ])
    def test_corrupt_payload_resets(self, payload, warnings):
        history = SearchHistoryManager(MemoryStore({STORAGE_KEY: payload}))
        assert history.get_history() == []
        assert any("Failed to load" in m for m in warnings)

    def test_store_failures_never_raise(self, warnings):
        history = SearchHistoryManager(FailingStore())
        history.add_search("fan", 1)
        history.remove_history_item("nope")
        history.clear_history()
        assert len(history) == 0
        assert any("Failed to save" in m for m in warnings)

    def test_save_failure_keeps_memory_state(self):
        history = SearchHistoryManager(FailingStore())
        history.add_search("fan", 1)
        assert history.get_recent_queries() == ["fan"]

    def test_custom_storage_key(self):
        store = MemoryStore()
        SearchHistoryManager(store, storage_key="other").add_search("fan", 1)
        assert store.load(STORAGE_KEY) is None
        assert store.load("other") is not None


class TestConcurrency:
    """Test that shared managers stay consistent under threads."""

    def test_parallel_adds_respect_bound(self):
        history = SearchHistoryManager(MemoryStore())

        def worker(n):
            for i in range(20):
                history.add_search(f"worker {n} query {i}", i)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        queries = history.get_recent_queries(100)
        assert len(queries) == MAX_HISTORY
        assert len(set(queries)) == MAX_HISTORY


class TestStores:
    """Test store implementations."""

    def test_stores_satisfy_protocol(self, tmp_path):
        assert isinstance(MemoryStore(), PersistentStore)
        assert isinstance(JsonFileStore(tmp_path), PersistentStore)

    def test_json_file_store_round_trip(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested")
        assert store.load("k") is None
        store.save("k", "[1, 2]")
        store.save("k", "[3]")
        assert store.load("k") == "[3]"
        assert not list((tmp_path / "nested").glob(".tmp-*"))

    def test_json_file_store_sanitizes_keys(self, tmp_path):
        store = JsonFileStore(tmp_path)
        assert store.path_for("../evil key").parent == tmp_path

    def test_json_file_store_write_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        with pytest.raises(StorageError):
            JsonFileStore(blocker).save("k", "v")
