"""In-memory TTL cache shielding the exchange rate limits."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Hashable, TypeVar

from spot_relay.utils.logging import get_logger

T = TypeVar("T")


@dataclass(slots=True)
class CachedValue(Generic[T]):
    """A fetched value and the clock reading when it was stored."""

    value: T
    fetched_at: float


class TTLCache:
    """Category/key cache with per-call TTL and an injectable clock.

    Best effort: two overlapping calls for the same stale key each run their
    fetcher and the last write wins. Fetchers must be idempotent reads.
    Entries are never evicted.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[tuple[str, Hashable], CachedValue[Any]] = {}
        self._logger = get_logger("spot_relay.cache")

    async def get(
        self,
        category: str,
        key: Hashable,
        ttl: float,
        fetcher: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached value while younger than ``ttl``, otherwise refetch."""
        entry = self._entries.get((category, key))
        if entry is not None and self._clock() - entry.fetched_at < ttl:
            return entry.value

        self._logger.debug("cache_miss", category=category, key=key, stale=entry is not None)
        value = await fetcher()
        self._entries[(category, key)] = CachedValue(value=value, fetched_at=self._clock())
        return value

    def peek(self, category: str, key: Hashable) -> CachedValue[Any] | None:
        """Return the stored entry without any freshness check."""
        return self._entries.get((category, key))

    def invalidate(self, category: str, key: Hashable | None = None) -> int:
        """Drop one entry, or the whole category when ``key`` is None."""
        if key is not None:
            return 1 if self._entries.pop((category, key), None) is not None else 0
        stale = [entry_key for entry_key in self._entries if entry_key[0] == category]
        for entry_key in stale:
            del self._entries[entry_key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)
