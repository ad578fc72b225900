import pytest

from stargazer.cache import BoundedCache


def test_get_set(fake_clock):
    cache = BoundedCache(clock=fake_clock)
    cache.set("a", 1, ttl_s=10)
    assert cache.get("a") == 1
    assert cache.get("missing") is None


def test_entry_expires_at_ttl(fake_clock):
    cache = BoundedCache(clock=fake_clock)
    cache.set("a", 1, ttl_s=10)
    fake_clock.advance(9)
    assert cache.get("a") == 1
    fake_clock.advance(1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_evicts_least_recently_used(fake_clock):
    cache = BoundedCache(max_entries=2, clock=fake_clock)
    cache.set("a", 1, ttl_s=100)
    cache.set("b", 2, ttl_s=100)
    fake_clock.advance(1)
    assert cache.get("a") == 1
    cache.set("c", 3, ttl_s=100)
    assert "b" not in cache
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_overwrite_does_not_evict(fake_clock):
    cache = BoundedCache(max_entries=2, clock=fake_clock)
    cache.set("a", 1, ttl_s=100)
    cache.set("b", 2, ttl_s=100)
    cache.set("a", 10, ttl_s=100)
    assert len(cache) == 2
    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_size_never_exceeds_max(fake_clock):
    cache = BoundedCache(max_entries=5, clock=fake_clock)
    for i in range(50):
        cache.set(f"k{i}", i, ttl_s=100)
        assert len(cache) <= 5


def test_periodic_cleanup_sweeps_expired(fake_clock):
    cache = BoundedCache(cleanup_interval_s=60, clock=fake_clock)
    cache.set("short", 1, ttl_s=5)
    cache.set("long", 2, ttl_s=600)
    fake_clock.advance(61)
    cache.set("other", 3, ttl_s=600)
    assert len(cache) == 2


def test_delete_and_clear(fake_clock):
    cache = BoundedCache(clock=fake_clock)
    cache.set("a", 1, ttl_s=10)
    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.set("b", 2, ttl_s=10)
    cache.clear()
    assert len(cache) == 0


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        BoundedCache(max_entries=0)
