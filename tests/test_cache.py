"""
Tests for the cache backends and the best-effort helpers.
"""

import json
from unittest.mock import MagicMock, patch

from mangaverse.mangaverse.cache import (
    MemoryCache, FileCache, create_cache, cache_get, cache_set
)


def test_memory_cache_round_trip():
    cache = MemoryCache()
    cache.set("a", "1")
    assert cache.get("a") == "1"
    assert cache.get("missing") is None
    assert cache.delete("a") is True
    assert cache.get("a") is None


def test_memory_cache_expiry():
    cache = MemoryCache()
    with patch("mangaverse.mangaverse.cache.time") as mock_time:
        mock_time.time.return_value = 1000.0
        cache.set("a", "1", ex=60)
        mock_time.time.return_value = 1059.0
        assert cache.get("a") == "1"
        mock_time.time.return_value = 1061.0
        assert cache.get("a") is None


def test_file_cache_round_trip(tmp_path):
    cache = FileCache(tmp_path / "cache")
    cache.set("stream:1:1-ep-1", '{"type": "embed"}', ex=60)

    assert cache.get("stream:1:1-ep-1") == '{"type": "embed"}'
    # A fresh instance reads the same directory
    assert FileCache(tmp_path / "cache").get("stream:1:1-ep-1") == '{"type": "embed"}'


def test_file_cache_expiry(tmp_path):
    cache = FileCache(tmp_path)
    with patch("mangaverse.mangaverse.cache.time") as mock_time:
        mock_time.time.return_value = 1000.0
        cache.set("k", "v", ex=10)
        mock_time.time.return_value = 2000.0
        assert cache.get("k") is None
    assert list(tmp_path.iterdir()) == []


def test_file_cache_corrupt_entry_is_a_miss(tmp_path):
    cache = FileCache(tmp_path)
    cache.set("k", "v")
    cache._path_for("k").write_text("{not json", encoding="utf-8")
    assert cache.get("k") is None


def test_create_cache(tmp_path):
    assert isinstance(create_cache("memory"), MemoryCache)
    file_cache = create_cache("file", str(tmp_path))
    assert isinstance(file_cache, FileCache)
    assert file_cache.directory == tmp_path
    assert create_cache("none") is None


def test_cache_helpers_encode_json():
    cache = MemoryCache()
    assert cache_set(cache, "k", {"a": [1, 2]}, ttl=60) is True
    assert json.loads(cache.get("k")) == {"a": [1, 2]}
    assert cache_get(cache, "k") == {"a": [1, 2]}


def test_cache_helpers_without_cache():
    assert cache_get(None, "k") is None
    assert cache_set(None, "k", {"a": 1}, ttl=60) is False


def test_cache_helpers_swallow_backend_errors():
    cache = MagicMock()
    cache.get.side_effect = ConnectionError("redis down")
    cache.set.side_effect = ConnectionError("redis down")

    assert cache_get(cache, "k") is None
    assert cache_set(cache, "k", {"a": 1}, ttl=60) is False


def test_cache_get_decodes_bytes_and_ignores_garbage():
    cache = MagicMock()
    cache.get.return_value = b'{"a": 1}'
    assert cache_get(cache, "k") == {"a": 1}

    cache.get.return_value = "not json"
    assert cache_get(cache, "k") is None
