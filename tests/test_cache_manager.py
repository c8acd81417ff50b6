from healthflow import cache_manager
from healthflow.cache_manager import ResultCache


def test_key_is_order_independent():
    first = ResultCache.make_key("baseline", {"a": 1, "b": {"c": 2, "d": 3}})
    second = ResultCache.make_key("baseline", {"b": {"d": 3, "c": 2}, "a": 1})
    assert first == second
    assert first != ResultCache.make_key("other", {"a": 1, "b": {"c": 2, "d": 3}})


def test_get_or_compute_runs_once():
    cache = ResultCache(max_size=4, ttl_seconds=60)
    calls = []

    def compute():
        calls.append(1)
        return {"deaths": 3.0}

    assert cache.get_or_compute("baseline", {"disease": "malaria"}, compute) == {"deaths": 3.0}
    assert cache.get_or_compute("baseline", {"disease": "malaria"}, compute) == {"deaths": 3.0}
    assert len(calls) == 1

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["stores"] == 1
    assert stats["hit_rate_percent"] == 50.0


def test_entries_expire(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_manager.time, "time", lambda: now[0])
    cache = ResultCache(max_size=4, ttl_seconds=10)

    cache.put("k", "v")
    assert cache.get("k") == "v"
    now[0] += 11
    assert cache.get("k") is None
    assert cache.stats()["entries"] == 0


def test_least_recently_used_evicted():
    cache = ResultCache(max_size=2, ttl_seconds=60)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.get("a")
    cache.put("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert cache.stats()["evictions"] == 1


def test_none_results_not_cached():
    cache = ResultCache(max_size=2, ttl_seconds=60)
    cache.get_or_compute("x", {}, lambda: None)
    assert cache.stats()["entries"] == 0


def test_clear_returns_count():
    cache = ResultCache(max_size=4, ttl_seconds=60)
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.clear() == 2
    assert cache.get("a") is None
