from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from kb_audit.cache import AnalysisCache, pair_key


def test_pair_key_is_order_independent():
    assert pair_key("b", "a") == pair_key("a", "b") == ("a", "b")
    assert pair_key("kb-2", "kb-10") == ("kb-10", "kb-2")


def test_get_or_compute_runs_once_per_key():
    cache: AnalysisCache[int] = AnalysisCache("test")
    calls = []

    def compute():
        calls.append(1)
        return 42

    assert cache.get_or_compute("k", compute) == 42
    assert cache.get_or_compute("k", compute) == 42
    assert len(calls) == 1
    assert cache.get("k") == 42
    assert "k" in cache
    assert len(cache) == 1


def test_failed_compute_is_not_cached():
    cache: AnalysisCache[int] = AnalysisCache("test")

    def fail():
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("k", fail)

    assert "k" not in cache
    assert cache.get("k") is None
    assert cache.get_or_compute("k", lambda: 7) == 7


def test_concurrent_callers_share_one_computation():
    cache: AnalysisCache[str] = AnalysisCache("test")
    calls = []
    lock = threading.Lock()

    def compute():
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return "value"

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: cache.get_or_compute("k", compute), range(8)))

    assert results == ["value"] * 8
    assert len(calls) == 1


def test_clear_returns_removed_count():
    cache: AnalysisCache[int] = AnalysisCache("test")
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("b", lambda: 2)

    assert cache.clear() == 2
    assert len(cache) == 0
    assert cache.clear() == 0
