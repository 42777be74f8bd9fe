# core/cache.py

"""
Simple in-memory caching for reference data (service type catalogue).

Entries are per-process; writes through the API invalidate by prefix.
"""

from typing import Optional, Any
from datetime import datetime, timedelta
from threading import Lock
from core.logging_config import logger


class CacheEntry:
    """Represents a cached value with expiration time."""

    def __init__(self, value: Any, ttl_seconds: int):
        self.value = value
        self.expires_at = datetime.now() + timedelta(seconds=ttl_seconds)

    def is_expired(self) -> bool:
        return datetime.now() >= self.expires_at


class SimpleCache:
    """
    Simple in-memory cache with TTL support.

    Thread-safe for concurrent access.
    """

    def __init__(self):
        self._cache: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int = 300):
        with self._lock:
            self._cache[key] = CacheEntry(value, ttl_seconds)

    def delete_prefix(self, prefix: str) -> int:
        """Drop every key starting with prefix. Returns how many were removed."""
        with self._lock:
            keys = [key for key in self._cache if key.startswith(prefix)]
            for key in keys:
                del self._cache[key]
            return len(keys)

    def clear(self):
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._cache)


# Global cache instance
_cache = SimpleCache()


def get_cache() -> SimpleCache:
    return _cache


def cache_get(key: str) -> Optional[Any]:
    value = _cache.get(key)
    if value is not None:
        logger.debug(f"Cache hit: {key}")
    return value


def cache_set(key: str, value: Any, ttl_seconds: int = 300):
    _cache.set(key, value, ttl_seconds)


def cache_invalidate(prefix: str):
    removed = _cache.delete_prefix(prefix)
    if removed:
        logger.debug(f"Cache invalidated {removed} entries under {prefix}")


def cache_clear():
    """Clear all cache entries."""
    _cache.clear()
