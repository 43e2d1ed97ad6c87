"""Tests for the bootstrap cache stores."""

import json
import logging
from pathlib import Path

import pytest

from eyelove.cache import JsonFileCache, MemoryCache


def test_memory_cache():
    cache = MemoryCache({"a": "1"})

    assert cache.get_item("a") == "1"
    assert cache.get_item("b") is None
    cache.set_item("b", "2")
    assert cache.get_item("b") == "2"


def test_memory_cache_copies_initial_items():
    initial = {"a": "1"}
    cache = MemoryCache(initial)
    cache.set_item("a", "2")

    assert initial == {"a": "1"}


def test_file_cache_missing_file_reads_empty(tmp_path: Path):
    cache = JsonFileCache(tmp_path / "cache.json")

    assert cache.get_item("eyelove-enabled-cache") is None


def test_file_cache_persists(tmp_path: Path):
    path = tmp_path / "cache.json"
    JsonFileCache(path).set_item("eyelove-enabled-cache", "true")
    JsonFileCache(path).set_item("other", "x")

    assert JsonFileCache(path).get_item("eyelove-enabled-cache") == "true"
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "eyelove-enabled-cache": "true",
        "other": "x",
    }


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_file_cache_ignores_bad_content(tmp_path: Path, caplog, content):
    caplog.set_level(logging.WARNING, logger="eyelove")
    path = tmp_path / "cache.json"
    path.write_text(content, encoding="utf-8")

    assert JsonFileCache(path).get_item("eyelove-enabled-cache") is None
    assert "Ignoring" in caplog.text


def test_file_cache_write_failure_is_logged(tmp_path: Path, caplog):
    caplog.set_level(logging.WARNING, logger="eyelove")
    # Parent directory does not exist
    cache = JsonFileCache(tmp_path / "missing" / "cache.json")

    cache.set_item("eyelove-enabled-cache", "false")

    assert "Could not write cache file" in caplog.text
    assert cache.get_item("eyelove-enabled-cache") is None
