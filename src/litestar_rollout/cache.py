"""Short-lived, process-local read cache for flags.

Each entry moves through a small state progression::

    FRESH --(ttl elapsed)--> STALE --(read-through started)--> REFETCHING
      ^                                                            |
      +----------------------(set with new value)------------------+

Only ``FRESH`` entries are served. The clock is injectable so TTL behaviour
can be tested without sleeping.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from litestar_rollout.types import CacheState

if TYPE_CHECKING:
    from litestar_rollout.models.flag import FeatureFlag

__all__ = ("DEFAULT_CACHE_TTL", "CacheEntry", "CacheStats", "FlagCache")

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 30.0


@dataclass(slots=True)
class CacheStats:
    """Hit / miss counters for a cache."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    max_size: int | None = None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


@dataclass(slots=True)
class CacheEntry:
    flag: FeatureFlag
    stored_at: float
    refetching: bool = False


class FlagCache:
    """TTL cache of flags keyed by flag key, with optional LRU bounding.

    Args:
        ttl: Seconds an entry stays fresh.
        max_size: Maximum number of entries, ``None`` for unbounded.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        max_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def state(self, key: str) -> CacheState | None:
        """Current state of the entry for ``key``, ``None`` when not cached."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.refetching:
            return CacheState.REFETCHING
        if self._clock() - entry.stored_at < self.ttl:
            return CacheState.FRESH
        return CacheState.STALE

    def get(self, key: str) -> FeatureFlag | None:
        """Return the cached flag if it is fresh, otherwise ``None``."""
        if self.state(key) is CacheState.FRESH:
            self._entries.move_to_end(key)
            self._hits += 1
            return self._entries[key].flag
        self._misses += 1
        return None

    def set(self, flag: FeatureFlag) -> None:
        """Store ``flag`` as a fresh entry, evicting the least recently used if full."""
        self._entries[flag.key] = CacheEntry(flag=flag, stored_at=self._clock())
        self._entries.move_to_end(flag.key)
        if self.max_size is not None:
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted flag %s from cache", evicted)

    def mark_refetching(self, key: str) -> None:
        """Flag a stale entry as being re-read from the shared store."""
        entry = self._entries.get(key)
        if entry is not None:
            entry.refetching = True

    def settle(self, key: str) -> None:
        """End a refetch that produced no new value; the entry reverts to stale."""
        entry = self._entries.get(key)
        if entry is not None:
            entry.refetching = False

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries), max_size=self.max_size)
