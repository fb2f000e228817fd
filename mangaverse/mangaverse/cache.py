"""
Key-value caching for MangaVerse.

Backends follow the small `get(key)` / `set(key, value, ex=seconds)` surface
of a Redis client, so a real Redis connection can be dropped in unchanged.
Every pipeline treats the cache as optional: `cache_get` and `cache_set`
swallow backend failures and treat a missing cache as a miss.
"""

import hashlib
import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

from .constants import CACHE_DIRNAME

logger = logging.getLogger(__name__)


class Cache(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ex: Optional[int] = None) -> Any:
        ...


class MemoryCache:
    """Process-local cache with per-key expiry."""

    def __init__(self):
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.time():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        expires_at = time.time() + ex if ex else None
        with self._lock:
            self._entries[key] = (value, expires_at)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None


class FileCache:
    """
    Cache persisted as one JSON file per key under a directory.

    Survives restarts of the CLI, which a MemoryCache cannot.
    """

    def __init__(self, directory: Path = Path(CACHE_DIRNAME)):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Optional[str]:
        cache_file = self._path_for(key)

        if not cache_file.exists():
            logger.debug(f"No cache entry for {key}")
            return None

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load cache entry for {key}: {e}")
            return None

        expires_at = entry.get("expires_at")
        if expires_at is not None and expires_at <= time.time():
            logger.debug(f"Cache entry for {key} is stale")
            self.delete(key)
            return None

        return entry.get("value")

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        cache_file = self._path_for(key)
        entry = {
            "key": key,
            "value": value,
            "expires_at": time.time() + ex if ex else None,
        }
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(cache_file, "w", encoding="utf-8") as f:
            json.dump(entry, f, ensure_ascii=False)
        logger.debug(f"Cache saved for {key}")
        return True

    def delete(self, key: str) -> bool:
        cache_file = self._path_for(key)
        if not cache_file.exists():
            return False
        try:
            cache_file.unlink()
            return True
        except OSError as e:
            logger.error(f"Failed to clear cache entry {key}: {e}")
            return False


def create_cache(backend: str, directory: Optional[str] = None) -> Optional[Cache]:
    """Builds the configured cache backend; 'none' disables caching."""
    if backend == "memory":
        return MemoryCache()
    if backend == "file":
        return FileCache(Path(directory or CACHE_DIRNAME))
    return None


def cache_get(cache: Optional[Cache], key: str) -> Optional[Any]:
    """Reads and decodes a JSON value. Any failure counts as a miss."""
    if cache is None:
        return None
    try:
        raw = cache.get(key)
    except Exception as e:
        logger.warning(f"Cache get failed for {key}: {e}")
        return None
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding undecodable cache entry {key}: {e}")
        return None


def cache_set(cache: Optional[Cache], key: str, value: Any, ttl: int) -> bool:
    """Encodes a value as JSON and stores it. Failures are logged, never raised."""
    if cache is None:
        return False
    try:
        cache.set(key, json.dumps(value, ensure_ascii=False), ex=ttl)
        return True
    except Exception as e:
        logger.warning(f"Cache set failed for {key}: {e}")
        return False
