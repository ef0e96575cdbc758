import asyncio

import pytest

from figlink.infrastructure.cache.caching_service import CacheEntry, CacheSweeper, CachingServiceImpl


@pytest.fixture
def small_cache(clock):
    return CachingServiceImpl(max_size=2, default_ttl=10, clock=clock)


def test_get_returns_stored_value(cache):
    cache.set("file:abc", {"name": "Design"})

    assert cache.get("file:abc") == {"name": "Design"}
    assert cache.counters["hits"] == 1
    assert cache.counters["sets"] == 1


def test_get_missing_key_counts_miss(cache):
    assert cache.get("nope") is None
    assert cache.counters["misses"] == 1


def test_expired_entry_is_removed_on_read(small_cache, clock):
    small_cache.set("a", 1)
    clock.advance(10.001)

    assert small_cache.get("a") is None
    assert "a" not in small_cache
    assert small_cache.counters["misses"] == 1


def test_entry_still_fresh_at_exact_ttl(small_cache, clock):
    small_cache.set("a", 1, ttl=5)
    clock.advance(5)

    assert small_cache.get("a") == 1


def test_per_entry_ttl_overrides_default(small_cache, clock):
    small_cache.set("short", 1, ttl=1)
    small_cache.set("long", 2)
    clock.advance(2)

    assert small_cache.get("short") is None
    assert small_cache.get("long") == 2


def test_evicts_least_recently_used(small_cache, clock):
    """maxSize=2: set A, set B, get A, set C leaves A and C."""
    small_cache.set("A", "a")
    clock.advance(1)
    small_cache.set("B", "b")
    clock.advance(1)
    small_cache.get("A")
    clock.advance(1)
    small_cache.set("C", "c")

    assert len(small_cache) == 2
    assert "A" in small_cache
    assert "C" in small_cache
    assert "B" not in small_cache
    assert small_cache.counters["deletes"] == 1


def test_overwrite_does_not_evict(small_cache):
    small_cache.set("A", 1)
    small_cache.set("B", 2)
    small_cache.set("A", 3)

    assert len(small_cache) == 2
    assert small_cache.get("A") == 3
    assert small_cache.get("B") == 2
    assert small_cache.counters["deletes"] == 0


def test_size_never_exceeds_max_size(clock):
    cache = CachingServiceImpl(max_size=3, clock=clock)
    for i in range(20):
        cache.set(f"key-{i}", i)
        assert len(cache) <= 3


def test_delete(cache):
    cache.set("a", 1)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert cache.counters["deletes"] == 1


def test_invalidate_by_pattern(cache):
    cache.set("file:abc", 1)
    cache.set("file:xyz", 2)
    cache.set("comments:abc", 3)

    removed = cache.invalidate(r"^file:")

    assert removed == 2
    assert "comments:abc" in cache
    assert cache.counters["deletes"] == 2


def test_invalidate_with_no_matches(cache):
    cache.set("file:abc", 1)
    assert cache.invalidate("images") == 0
    assert len(cache) == 1


def test_clear_empties_cache(cache):
    cache.set("a", 1)
    cache.set("b", 2)

    cache.clear()

    assert len(cache) == 0
    assert cache.counters["deletes"] == 2


def test_cleanup_removes_unread_expired_entries(small_cache, clock):
    small_cache.set("old", 1, ttl=1)
    small_cache.set("new", 2, ttl=100)
    clock.advance(5)

    assert small_cache.cleanup() == 1
    assert "old" not in small_cache
    assert "new" in small_cache


def test_stats_rates(cache):
    cache.set("a", 1)
    cache.get("a")
    cache.get("a")
    cache.get("a")
    cache.get("missing")

    stats = cache.get_stats()

    assert stats["hit_rate"] == pytest.approx(0.75)
    assert stats["miss_rate"] == pytest.approx(0.25)
    assert stats["hit_rate"] + stats["miss_rate"] == pytest.approx(1.0)
    assert stats["total_hits"] == 3
    assert stats["total_misses"] == 1
    assert stats["size"] == 1
    assert stats["max_size"] == 10


def test_stats_with_no_lookups(cache):
    stats = cache.get_stats()
    assert stats["hit_rate"] == 0.0
    assert stats["miss_rate"] == 0.0


def test_hit_updates_access_bookkeeping(cache, clock):
    cache.set("a", 1)
    clock.advance(3)
    cache.get("a")

    entry = cache._entries["a"]
    assert entry.access_count == 1
    assert entry.last_accessed == clock()


def test_cache_entry_expiry():
    entry = CacheEntry(value=1, timestamp=100.0, ttl=5)
    assert not entry.is_expired(105.0)
    assert entry.is_expired(105.5)


def test_rejects_zero_max_size():
    with pytest.raises(ValueError):
        CachingServiceImpl(max_size=0)


@pytest.mark.asyncio
async def test_sweeper_runs_cleanup_periodically(mocker):
    cache = mocker.Mock()
    cache.cleanup.return_value = 0
    sweeper = CacheSweeper(cache, interval_seconds=0.01)

    await sweeper.start()
    assert sweeper.running
    await asyncio.sleep(0.05)
    await sweeper.stop()

    assert not sweeper.running
    assert cache.cleanup.call_count >= 1


@pytest.mark.asyncio
async def test_sweeper_stop_without_start_is_noop(cache):
    sweeper = CacheSweeper(cache)
    await sweeper.stop()
    assert not sweeper.running


def test_sweeper_rejects_non_positive_interval(cache):
    with pytest.raises(ValueError):
        CacheSweeper(cache, interval_seconds=0)


def test_get_default_distinguishes_cached_none(cache, clock):
    missing = object()
    cache.set("null-body", None)

    assert cache.get("null-body", missing) is None
    assert cache.get("absent", missing) is missing
    clock.advance(301)
    assert cache.get("null-body", missing) is missing
