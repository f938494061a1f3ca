"""
In-memory analysis caches owned by an engine instance.

Similarity results are keyed by a normalized article pair so that (A, B)
and (B, A) share one entry. Structural reports are keyed by article id.
Entries never expire; clear() is the only invalidation path.
"""

from __future__ import annotations

from concurrent.futures import Future
import threading
from typing import Callable, Generic, Hashable, TypeVar

T = TypeVar("T")


def pair_key(first_id: str, second_id: str) -> tuple[str, str]:
    """Return the order-independent cache key for an article pair."""
    a, b = str(first_id), str(second_id)
    return (a, b) if a <= b else (b, a)


class AnalysisCache(Generic[T]):
    """Thread-safe memo map with atomic insert-if-absent.

    The first caller for a key installs a pending future and computes the
    value outside the lock; concurrent callers for the same key wait on that
    future, so each key is computed at most once. A failed computation is
    removed and its exception propagates to every waiter.

    Attributes:
        name: Label used in clear/size reports
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._entries: dict[Hashable, Future] = {}

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future

        if not owner:
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                self._entries.pop(key, None)
            future.set_exception(exc)
            raise
        future.set_result(value)
        return value

    def get(self, key: Hashable) -> T | None:
        with self._lock:
            future = self._entries.get(key)
        if future is None or not future.done() or future.exception() is not None:
            return None
        return future.result()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries = {}
        return removed
