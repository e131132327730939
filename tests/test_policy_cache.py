"""
Tests for the in-process policy cache.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.cache import PolicyCache
from app.domain.scheduling.calendar import PolicySnapshot


class CountingLoader:
    def __init__(self, delay=0.0):
        self.calls = []
        self.delay = delay
        self.gap_days = 2
        self._lock = threading.Lock()

    def __call__(self, category):
        with self._lock:
            self.calls.append(category)
        if self.delay:
            time.sleep(self.delay)
        return PolicySnapshot(category, self.gap_days, False)


# =============================================================
# TEST: Resolve / invalidate
# =============================================================

class TestPolicyCache:
    """Load-once semantics and explicit invalidation."""

    def test_second_resolve_is_a_hit(self):
        loader = CountingLoader()
        cache = PolicyCache(loader)

        first = cache.resolve("juices")
        second = cache.resolve("juices")

        assert first is second
        assert loader.calls == ["juices"]
        assert cache.stats()["hits"] == 1
        assert cache.stats()["misses"] == 1

    def test_invalidate_one_category(self):
        loader = CountingLoader()
        cache = PolicyCache(loader)
        cache.resolve("juices")
        cache.resolve("fruit_bowls")

        assert cache.invalidate("juices") == 1
        assert cache.peek("juices") is None
        assert cache.peek("fruit_bowls") is not None

    def test_invalidate_everything(self):
        cache = PolicyCache(CountingLoader())
        cache.resolve("juices")
        cache.resolve("customized")

        assert cache.invalidate() == 2
        assert cache.stats()["entries"] == []

    def test_invalidate_missing_category(self):
        assert PolicyCache(CountingLoader()).invalidate("juices") == 0

    def test_reload_after_invalidate_sees_new_value(self):
        loader = CountingLoader()
        cache = PolicyCache(loader)
        assert cache.resolve("juices").gap_days == 2

        loader.gap_days = 5
        assert cache.resolve("juices").gap_days == 2
        cache.invalidate("juices")
        assert cache.resolve("juices").gap_days == 5

    def test_loader_errors_are_not_cached(self):
        attempts = []

        def flaky(category):
            attempts.append(category)
            if len(attempts) == 1:
                raise RuntimeError("store unavailable")
            return PolicySnapshot(category, 3, False)

        cache = PolicyCache(flaky)
        with pytest.raises(RuntimeError):
            cache.resolve("customized")
        assert cache.peek("customized") is None
        assert cache.resolve("customized").gap_days == 3
        assert len(attempts) == 2

    def test_concurrent_misses_load_once(self):
        loader = CountingLoader(delay=0.05)
        cache = PolicyCache(loader)

        with ThreadPoolExecutor(max_workers=8) as ex:
            results = list(ex.map(lambda _: cache.resolve("juices"), range(16)))

        assert loader.calls == ["juices"]
        assert all(r is results[0] for r in results)
