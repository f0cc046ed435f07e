"""Tests for the usearch command-line interface."""

import json
import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from unisearch.cli.usearch import cli
from unisearch.engine.history import SearchHistoryManager
from unisearch.engine.storage import JsonFileStore


LISTINGS = [
    {"id": "p1", "title": "Professional AC Unit", "category": "hvac", "type": "listing"},
    {"id": "p2", "title": "AC System", "category": "hvac", "type": "bundle"},
    {"id": "p3", "title": "Premium AC Unit", "category": "hvac", "type": "listing"},
    {"id": "p4", "title": "Portable Fan", "category": "fans", "type": "listing"},
]


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    data_file = tmp_path / "listings.json"
    data_file.write_text(json.dumps(LISTINGS))
    return tmp_path


@pytest.fixture
def invoke(workspace):
    runner = CliRunner()

    def _invoke(*args, **kwargs):
        return runner.invoke(cli, ["--history-dir", str(workspace / "history"), *args], **kwargs)

    return _invoke


def stored_history(workspace):
    return SearchHistoryManager(JsonFileStore(workspace / "history"))


def test_search_json(invoke, workspace):
    result = invoke("search", "AC", "--data", "listings.json", "--json")
    assert result.exit_code == 0, result.output
    ids = [r["id"] for r in json.loads(result.output)]
    assert ids == ["p2", "p1", "p3"]


def test_search_table(invoke):
    result = invoke("search", "fan", "--data", "listings.json")
    assert result.exit_code == 0, result.output
    assert "Portable Fan" in result.output


def test_search_with_filter(invoke):
    result = invoke("search", "AC", "--data", "listings.json", "--filter", "type:bundle", "--json")
    assert [r["id"] for r in json.loads(result.output)] == ["p2"]


def test_search_custom_field(invoke, workspace):
    (workspace / "notes.json").write_text(json.dumps({"items": [
        {"id": 1, "text": "red car"},
        {"id": 2, "text": "red"},
        {"id": 3, "text": "car"},
    ]}))
    result = invoke("search", "red AND car", "--data", "notes.json", "--field", "text", "--json")
    assert [r["id"] for r in json.loads(result.output)] == ["1"]


def test_search_no_results(invoke):
    result = invoke("search", "zzzzzzzzzzzz", "--data", "listings.json")
    assert "No results found" in result.output


def test_search_records_history(invoke, workspace):
    invoke("search", "AC", "--data", "listings.json")
    invoke("search", "fan", "--data", "listings.json")
    assert stored_history(workspace).get_recent_queries() == ["fan", "AC"]

    result = invoke("history", "popular")
    assert "1. fan" in result.output
    assert "2. AC" in result.output


def test_suggest(invoke):
    invoke("search", "AC unit", "--data", "listings.json")
    result = invoke("suggest", "ac", "--data", "listings.json", "--limit", "2")
    assert result.exit_code == 0, result.output
    assert "1. Recent" in result.output
    assert "3." not in result.output


def test_history_remove(invoke, workspace):
    invoke("search", "AC", "--data", "listings.json")
    entry_id = stored_history(workspace).get_history()[0].id

    result = invoke("history", "remove", entry_id)
    assert "Removed" in result.output
    assert len(stored_history(workspace)) == 0


def test_history_clear(invoke, workspace):
    invoke("search", "AC", "--data", "listings.json")
    result = invoke("history", "clear", "--yes")
    assert result.exit_code == 0
    assert "No search history" in invoke("history", "list").output


def test_history_clear_declined(invoke, workspace):
    invoke("search", "AC", "--data", "listings.json")
    invoke("history", "clear", input="n\n")
    assert len(stored_history(workspace)) == 1


def test_unreadable_data(invoke):
    result = invoke("search", "AC", "--data", "missing.json")
    assert result.exit_code == 1
    assert "Cannot read data file" in result.output


def test_bad_config(invoke, workspace):
    config = workspace / "bad.yaml"
    config.write_text("max_suggestions: 0\n")
    result = invoke("--config", str(config), "history", "list")
    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_markup_in_titles_and_queries_is_shown_literally(invoke, workspace):
    (workspace / "alarms.json").write_text(json.dumps([{"id": "a1", "title": "[red]Alarm"}]))
    result = invoke("search", "alarm", "--data", "alarms.json")
    assert result.exit_code == 0, result.output
    assert "[red]Alarm" in result.output

    invoke("search", "[bold]alarm", "--data", "alarms.json")
    assert "1. [bold]alarm" in invoke("history", "popular").output
