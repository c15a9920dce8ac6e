"""CacheStore（コスト考慮キャッシュ）のテスト。"""

import pytest

from kvstore.errors import AdmissionError
from kvstore.interfaces.store import Ref
from kvstore.store.cache import CacheOptions, CacheStore, CostCache, FrequencySketch


def _cache(max_cost: int = 3, **kwargs) -> CostCache:
    params = dict(num_counters=100, max_cost=max_cost, buffer_items=1, metrics=True)
    params.update(kwargs)
    return CostCache(**params)


class TestAdmission:
    def test_rejects_item_above_capacity(self):
        store = CacheStore(CacheOptions(max_cost=10, cost=len))
        with pytest.raises(AdmissionError):
            store.set("foo", "x" * 100)
        assert store.get("foo", Ref(str)) is False

    def test_evicts_least_recently_used(self):
        cache = _cache(max_cost=2)
        cache.set("a", b"1")
        cache.set("b", b"2")
        cache.get("a")  # b が最も古くなる
        cache.set("c", b"3")

        assert cache.get("b") is None
        assert cache.get("a") == b"1"
        assert cache.get("c") == b"3"
        assert cache.used_cost == 2

    def test_rejects_new_key_less_frequent_than_victim(self):
        """頻繁に読まれるキーは、初見のキーによって追い出されない。"""
        cache = _cache(max_cost=1)
        cache.set("hot", b"1")
        for _ in range(5):
            cache.get("hot")

        with pytest.raises(AdmissionError):
            cache.set("cold", b"2")
        assert cache.get("hot") == b"1"
        assert cache.metrics.sets_rejected == 1

    def test_update_is_always_admitted(self):
        cache = _cache(max_cost=1)
        cache.set("a", b"1")
        cache.set("a", b"2")
        assert cache.get("a") == b"2"
        assert cache.metrics.keys_updated == 1

    def test_delete_releases_cost(self):
        cache = _cache(max_cost=1)
        cache.set("a", b"1")
        cache.delete("a")
        cache.delete("a")
        assert cache.used_cost == 0
        cache.set("b", b"2")
        assert cache.get("b") == b"2"


class TestMetrics:
    def test_disabled_by_default(self):
        assert CacheStore().metrics is None

    def test_counts_hits_and_misses(self):
        store = CacheStore(CacheOptions(metrics=True))
        store.set("foo", "bar")
        store.get("foo", Ref(str))
        store.get("missing", Ref(str))

        metrics = store.metrics
        assert metrics.hits == 1
        assert metrics.misses == 1
        assert metrics.keys_added == 1
        assert metrics.hit_ratio == 0.5

    def test_snapshot_is_a_copy(self):
        store = CacheStore(CacheOptions(metrics=True))
        snapshot = store.metrics
        store.set("foo", "bar")
        assert snapshot.keys_added == 0


class TestFrequencySketch:
    def test_estimate_counts_increments(self):
        sketch = FrequencySketch(num_counters=64)
        for _ in range(3):
            sketch.increment("a")
        assert sketch.estimate("a") >= 3
        assert sketch.estimate("never-seen") <= sketch.estimate("a")

    def test_counters_saturate(self):
        sketch = FrequencySketch(num_counters=1000)
        for _ in range(100):
            sketch.increment("a")
        assert sketch.estimate("a") == FrequencySketch.MAX_COUNT

    def test_reset_halves_counters(self):
        sketch = FrequencySketch(num_counters=1)
        for _ in range(9):
            sketch.increment("a")
        assert sketch.estimate("a") == 9
        sketch.increment("a")  # 10回目で半減
        assert sketch.estimate("a") == 5
