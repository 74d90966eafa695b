"""Tests for the namespaced response cache."""
from __future__ import annotations

from eiken_trainer.utils.cache import CacheBackend, build_cache_key


def test_invalidate_by_prefix_keeps_other_learners() -> None:
    cache = CacheBackend()
    cache.set("progress:due", "learner-a:5:all", 3, ttl_seconds=60)
    cache.set("progress:due", "learner-b:5:all", 7, ttl_seconds=60)

    cache.invalidate("progress:due", prefix="learner-a:")

    assert cache.get("progress:due", "learner-a:5:all") is None
    assert cache.get("progress:due", "learner-b:5:all") == 7


def test_get_or_set_computes_once() -> None:
    cache = CacheBackend()
    calls: list[int] = []

    def factory() -> dict:
        calls.append(1)
        return {"levels": []}

    key = build_cache_key(view="all")
    assert cache.get_or_set("levels", key, factory, ttl_seconds=60) == {"levels": []}
    assert cache.get_or_set("levels", key, factory, ttl_seconds=60) == {"levels": []}
    assert len(calls) == 1


def test_build_cache_key_is_order_independent() -> None:
    assert build_cache_key(a=1, b=2) == build_cache_key(b=2, a=1)
