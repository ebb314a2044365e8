"""
LRU cache for processed MathML results.

Design:
- Keys combine the normalized MathML with the ALIX thresholds.
- Recency is the insertion order of an OrderedDict; the first key is the
  least recently used.
- Every public method holds one lock for its whole sequence so concurrent
  handlers never see a half-evicted cache or torn statistics.
"""
from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Mapping

from core.logger import logger
from services.normalizer import build_cache_key, normalize_mathml


class MathMLCache:
    """Bounded least-recently-used store with hit/miss statistics."""

    def __init__(self, max_size: int = 1000) -> None:
        if not isinstance(max_size, int) or max_size < 1:
            raise ValueError(f"Cache size must be a positive integer, got {max_size!r}")
        self.max_size = max_size
        self._entries: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.RLock()
        self.hit_count = 0
        self.miss_count = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def generate_key(self, mathml: str, thresholds: Mapping[str, Any] | None) -> str:
        """Build a deterministic key from MathML content and thresholds."""
        return build_cache_key(mathml, thresholds)

    def normalize_mathml(self, mathml: str) -> str:
        return normalize_mathml(mathml)

    def get(self, key: str) -> Any | None:
        """Return the cached result, refreshing its recency, or None."""
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def set(self, key: str, result: Any) -> None:
        """Store a result, evicting the least recently used key when full."""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
                logger.debug("Cache full (%d), evicted oldest entry", self.max_size)
            self._entries[key] = result

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._entries.clear()
            self.hit_count = 0
            self.miss_count = 0
        logger.info("MathML cache cleared")

    def record_access(self, hit: bool) -> None:
        """Track a cache hit or miss for statistics."""
        with self._lock:
            if hit:
                self.hit_count += 1
            else:
                self.miss_count += 1

    def get_stats(self) -> dict[str, int | float]:
        """Return size, capacity, counters and hit rate."""
        with self._lock:
            total = self.hit_count + self.miss_count
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "hit_count": self.hit_count,
                "miss_count": self.miss_count,
                "total_requests": total,
                "hit_rate": self.hit_count / total if total > 0 else 0.0,
            }

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)
