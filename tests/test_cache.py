# tests/test_cache.py

"""
Tests for caching functionality.
"""

from unittest.mock import patch
from datetime import datetime, timedelta

from core.cache import (
    CHECKLISTS,
    PROFILES,
    SITES,
    VISITS,
    QueryCache,
    cache_clear,
    cache_delete,
    cache_get,
    cache_invalidate,
    cache_set,
    get_cache,
)


def test_cache_set_and_get():
    """Test setting and getting values from cache."""
    cache_set("test_key", "test_value", ttl_seconds=60)
    value = cache_get("test_key")

    assert value == "test_value"


def test_cache_expiration():
    """Test that cache entries expire correctly."""
    cache_set("expiring_key", "expired_value", ttl_seconds=60)
    assert cache_get("expiring_key") == "expired_value"

    later = datetime.now() + timedelta(seconds=61)
    with patch("core.cache.datetime") as mock_datetime:
        mock_datetime.now.return_value = later
        assert cache_get("expiring_key") is None

    assert get_cache().size() == 0


def test_cache_delete():
    """Test deleting cache entries."""
    cache_set("delete_key", "delete_value")
    assert cache_get("delete_key") == "delete_value"

    cache_delete("delete_key")

    assert cache_get("delete_key") is None


def test_cache_clear():
    """Test clearing all cache entries."""
    cache_set("key1", "value1")
    cache_set("key2", "value2")

    cache_clear()

    assert cache_get("key1") is None
    assert cache_get("key2") is None


def test_invalidate_drops_only_named_groups():
    """Test that a write clears the groups it touches and nothing else."""
    cache_set("sites:views:*", ["site"], groups=(SITES, CHECKLISTS, PROFILES))
    cache_set("checklists:list", ["checklist"], groups=(CHECKLISTS, SITES))
    cache_set("dashboard:admin", {"sites": 1}, groups=(SITES, CHECKLISTS, PROFILES, VISITS))
    cache_set("ungrouped", "keep")

    removed = cache_invalidate(VISITS)

    assert removed == 1
    assert cache_get("dashboard:admin") is None
    assert cache_get("sites:views:*") == ["site"]
    assert cache_get("checklists:list") == ["checklist"]
    assert cache_get("ungrouped") == "keep"


def test_invalidate_multiple_groups_counts_keys_once():
    """Test that a key in several invalidated groups is removed once."""
    cache_set("a", 1, groups=(SITES, CHECKLISTS))
    cache_set("b", 2, groups=(CHECKLISTS,))

    assert cache_invalidate(SITES, CHECKLISTS) == 2
    assert cache_invalidate(SITES) == 0


def test_overwrite_moves_key_between_groups():
    """Test that re-setting a key replaces its group membership."""
    cache = QueryCache()
    cache.set("k", "old", groups=(SITES,))
    cache.set("k", "new", groups=(VISITS,))

    assert cache.invalidate(SITES) == 0
    assert cache.get("k") == "new"
    assert cache.invalidate(VISITS) == 1
    assert cache.size() == 0


def test_cleanup_expired():
    """Test bulk removal of expired entries."""
    cache = QueryCache()
    cache.set("short", 1, ttl_seconds=0, groups=(SITES,))
    cache.set("long", 2, ttl_seconds=300, groups=(SITES,))

    cache.cleanup_expired()

    assert cache.size() == 1
    assert cache.invalidate(SITES) == 1


def test_invalidation_sweeps_expired_entries():
    """Test that a mutation's invalidation also drops expired entries in other groups."""
    cache_set("stale", "old", ttl_seconds=0, groups=(PROFILES,))
    cache_set("fresh", "new", ttl_seconds=300, groups=(PROFILES,))
    cache_set("sites:all", [1], ttl_seconds=300, groups=(SITES,))

    assert cache_invalidate(SITES) == 1

    assert get_cache().size() == 1
    assert cache_get("fresh") == "new"
