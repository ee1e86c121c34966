# core/cache.py

"""
In-memory query cache with named invalidation groups.

Read paths store results under a key and register that key in one or
more groups ("sites", "checklists", "profiles", "visits"). Write paths
invalidate the groups they touch, which drops every key registered
under them. There is no implicit global invalidation.
"""

from typing import Optional, Any, Iterable
from datetime import datetime, timedelta
from threading import Lock
from core.logging_config import logger


# Named invalidation groups
SITES = "sites"
CHECKLISTS = "checklists"
PROFILES = "profiles"
VISITS = "visits"


class CacheEntry:
    """Represents a cached value with expiration time."""

    def __init__(self, value: Any, ttl_seconds: int, groups: Iterable[str] = ()):
        self.value = value
        self.expires_at = datetime.now() + timedelta(seconds=ttl_seconds)
        self.groups = frozenset(groups)

    def is_expired(self) -> bool:
        """Check if the cache entry has expired."""
        return datetime.now() >= self.expires_at


class QueryCache:
    """
    Keyed cache with TTL entries and group-based invalidation.

    Thread-safe for concurrent access.
    """

    def __init__(self):
        self._cache: dict[str, CacheEntry] = {}
        self._groups: dict[str, set[str]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Returns:
            Cached value or None if not found or expired
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                self._remove(key)
                return None

            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int = 300, groups: Iterable[str] = ()):
        """
        Set a value in the cache with TTL, registered under `groups`.
        """
        with self._lock:
            self._remove(key)
            entry = CacheEntry(value, ttl_seconds, groups)
            self._cache[key] = entry
            for group in entry.groups:
                self._groups.setdefault(group, set()).add(key)

    def delete(self, key: str):
        with self._lock:
            self._remove(key)

    def invalidate(self, *groups: str) -> int:
        """
        Drop every key registered under any of `groups`.

        Returns:
            Number of keys removed
        """
        with self._lock:
            keys = set()
            for group in groups:
                keys |= self._groups.pop(group, set())
            for key in keys:
                self._remove(key)
            return len(keys)

    def clear(self):
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()
            self._groups.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries from the cache. Returns the number removed."""
        with self._lock:
            expired_keys = [
                key for key, entry in self._cache.items()
                if entry.is_expired()
            ]
            for key in expired_keys:
                self._remove(key)
            return len(expired_keys)

    def size(self) -> int:
        """Get the number of entries in the cache."""
        with self._lock:
            return len(self._cache)

    def _remove(self, key: str):
        # Caller holds the lock
        entry = self._cache.pop(key, None)
        if entry is None:
            return
        for group in entry.groups:
            members = self._groups.get(group)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._groups[group]


# Global cache instance
_cache = QueryCache()


def get_cache() -> QueryCache:
    """Get the global cache instance."""
    return _cache


def cache_get(key: str) -> Optional[Any]:
    value = _cache.get(key)
    if value is not None:
        logger.debug(f"Cache hit: {key}")
    return value


def cache_set(key: str, value: Any, ttl_seconds: int = 300, groups: Iterable[str] = ()):
    groups = tuple(groups)
    _cache.set(key, value, ttl_seconds, groups)
    logger.debug(f"Cache stored: {key} groups={sorted(groups)}")


def cache_delete(key: str):
    _cache.delete(key)


def cache_invalidate(*groups: str) -> int:
    """Invalidate named groups after a mutation."""
    removed = _cache.invalidate(*groups)
    # Every mutation also sweeps expired entries
    expired = _cache.cleanup_expired()
    logger.debug(f"Cache invalidated groups={list(groups)} keys_removed={removed} expired={expired}")
    return removed


def cache_clear():
    """Clear all cache entries."""
    _cache.clear()
