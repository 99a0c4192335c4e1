"""Bounded LRU cache for compiled templates.

Thread-Safety:
All operations hold one lock; the critical sections are a dict move or
insert, so contention stays low.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable
from threading import Lock
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Least-recently-used cache holding at most ``maxsize`` entries.

    A ``maxsize`` of 0 disables caching.

    Example:
            >>> cache = LRUCache(2)
            >>> cache.set("a", 1); cache.set("b", 2); cache.set("c", 3)
            >>> cache.get("a") is None
            True
    """

    __slots__ = ("_data", "_hits", "_lock", "_maxsize", "_misses")

    def __init__(self, maxsize: int):
        if maxsize < 0:
            raise ValueError(f"maxsize must be >= 0, got {maxsize}")
        self._data: OrderedDict[K, V] = OrderedDict()
        self._lock = Lock()
        self._maxsize = maxsize
        self._hits = 0
        self._misses = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def get(self, key: K) -> V | None:
        with self._lock:
            try:
                value = self._data[key]
            except KeyError:
                self._misses += 1
                return None
            self._data.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: K, value: V) -> None:
        if self._maxsize == 0:
            return
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self._maxsize:
                self._data.popitem(last=False)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        return {
            "size": len(self._data),
            "max_size": self._maxsize,
            "hits": self._hits,
            "misses": self._misses,
        }
