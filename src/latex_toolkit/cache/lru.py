"""
Module: cache.lru

Purpose:
    Thread-safe least-recently-used store bounded by entry count and,
    optionally, total value size. Both artifact cache tiers are built on it.

Key Classes:
    - LRUStore: Generic bounded LRU mapping

Dependencies:
    - collections.OrderedDict, threading (std)

Used By:
    - latex_toolkit.cache.artifact_cache: Tier 1 and Tier 2 stores
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class LRUStore(Generic[K, V]):
    """
    Bounded LRU mapping safe for concurrent readers and writers.

    Values are expected to be immutable. ``get`` hands out the stored
    object itself; a later eviction only drops the store's reference, so
    a value already returned to a caller stays valid.

    Writes to an existing key replace the value (last writer wins).

    Attributes:
        name: Label used in log messages
        max_items: Maximum number of entries
        max_bytes: Maximum total size of values, or None

    Example:
        >>> store = LRUStore("vectors", max_items=2)
        >>> store.put("a", b"1"); store.put("b", b"2"); store.put("c", b"3")
        >>> store.contains("a")
        False
    """

    def __init__(
        self,
        name: str,
        max_items: int,
        max_bytes: Optional[int] = None,
        sizeof: Callable[[V], int] = len,
    ):
        """
        Initialize store with capacity limits.

        Args:
            name: Label used in log messages.
            max_items: Maximum entries (>= 1).
            max_bytes: Maximum total of ``sizeof(value)``, None for no limit.
            sizeof: Size function for values. Defaults to ``len``.
        """
        if max_items < 1:
            raise ValueError(f"max_items must be >= 1: {max_items}")
        if max_bytes is not None and max_bytes < 1:
            raise ValueError(f"max_bytes must be >= 1: {max_bytes}")
        self.name = name
        self._max_items = max_items
        self._max_bytes = max_bytes
        self._sizeof = sizeof
        self._data: OrderedDict[K, V] = OrderedDict()
        self._sizes: dict[K, int] = {}
        self._total_bytes = 0
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: K) -> Optional[V]:
        """Return the value for ``key`` and mark it most recently used."""
        with self._lock:
            if key not in self._data:
                self._misses += 1
                logger.debug(f"{self.name} MISS: {key}")
                return None
            self._data.move_to_end(key)
            self._hits += 1
            logger.debug(f"{self.name} HIT: {key}")
            return self._data[key]

    def peek(self, key: K) -> Optional[V]:
        """Return the value for ``key`` without touching recency or stats."""
        with self._lock:
            return self._data.get(key)

    def contains(self, key: K) -> bool:
        """Check for ``key`` without returning the value."""
        with self._lock:
            return key in self._data

    def put(self, key: K, value: V) -> None:
        """
        Store ``value`` under ``key``, evicting old entries as needed.

        A value larger than ``max_bytes`` on its own is not stored.
        """
        size = self._sizeof(value)
        with self._lock:
            if self._max_bytes is not None and size > self._max_bytes:
                logger.debug(
                    f"{self.name} SKIP: {key} ({size} bytes exceeds {self._max_bytes})"
                )
                return

            if key in self._data:
                self._total_bytes -= self._sizes[key]
                self._data.move_to_end(key)
            self._data[key] = value
            self._sizes[key] = size
            self._total_bytes += size

            while len(self._data) > self._max_items or (
                self._max_bytes is not None and self._total_bytes > self._max_bytes
            ):
                oldest, _ = self._data.popitem(last=False)
                self._total_bytes -= self._sizes.pop(oldest)
                self._evictions += 1
                logger.debug(f"{self.name} EVICT: {oldest}")

    def remove(self, key: K) -> bool:
        """Drop ``key`` if present. Returns True if an entry was removed."""
        with self._lock:
            if key not in self._data:
                return False
            del self._data[key]
            self._total_bytes -= self._sizes.pop(key)
            return True

    def remove_if(self, key: K, expected: V) -> bool:
        """
        Drop ``key`` only while it still maps to ``expected``.

        Lets a reader discard a value it found unusable without deleting
        a newer value another thread stored in the meantime.

        Returns:
            True if the entry was removed.
        """
        with self._lock:
            if key not in self._data or self._data[key] != expected:
                return False
            del self._data[key]
            self._total_bytes -= self._sizes.pop(key)
            return True

    def clear(self) -> None:
        """Clear the store."""
        with self._lock:
            self._data.clear()
            self._sizes.clear()
            self._total_bytes = 0
        logger.debug(f"{self.name} cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    @property
    def total_bytes(self) -> int:
        """Sum of the sizes of stored values."""
        with self._lock:
            return self._total_bytes

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def evictions(self) -> int:
        return self._evictions

    @property
    def stats(self) -> str:
        """Return cache statistics as string."""
        with self._lock:
            return (
                f"{self.name}: {len(self._data)}/{self._max_items} entries, "
                f"{self._total_bytes} bytes, {self._hits} hits, "
                f"{self._misses} misses, {self._evictions} evictions"
            )
