"""
SnapshotCache - single-entry TTL cache for the full employee list.

Features:
- One logical key: the whole list, held as an immutable Snapshot
- TTL expiry measured on a monotonic clock
- Single-flight population: concurrent misses share one upstream fetch
- Explicit invalidation after writes
- No stale-on-error fallback: a failed refresh always reaches the caller
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterable

from loguru import logger

from gateway.models import Employee
from gateway.services.deduplicator import DeduplicatorStats, RequestDeduplicator


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time copy of the upstream list. Replaced, never mutated."""

    entries: tuple[Employee, ...]
    fetched_at: datetime
    loaded_at: float  # monotonic seconds, used for expiry


class SnapshotCache:
    """
    Holds at most one Snapshot and repopulates it on demand.

    Usage:
        cache = SnapshotCache(ttl=timedelta(seconds=30))
        snapshot = await cache.get_or_populate(lambda: client.list_all(ctx))
        ...
        await cache.invalidate()  # after a successful write

    Each invalidation bumps a generation counter. There is never more than
    one population in flight: a caller whose generation is newer than the
    running population's waits for it, ignores its result and then starts
    (or joins) one fresh population. A population that started before an
    invalidation answers the callers that were already waiting but is not
    stored.
    """

    KEY = "employees:all"

    def __init__(
        self,
        ttl: timedelta = timedelta(seconds=30),
        clock: Callable[[], float] = time.monotonic,
        debug: bool = False,
    ):
        self._ttl = ttl
        self._clock = clock
        self._debug = debug
        self._snapshot: Snapshot | None = None
        self._generation = 0
        self._lock = asyncio.Lock()
        self._dedup = RequestDeduplicator(debug=debug)
        self._stats = CacheStats()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def get_or_populate(
        self,
        populate_fn: Callable[[], Awaitable[Iterable[Employee]]],
    ) -> Snapshot:
        """Return the cached snapshot, or fetch one (once) if none is valid."""
        while True:
            async with self._lock:
                snapshot = self._current()
                if snapshot is not None:
                    self._stats.hits += 1
                    self._log("HIT")
                    return snapshot
                self._stats.misses += 1
                generation = self._generation
                self._log(f"MISS (generation {generation})")

            snapshot, populated_for = await self._dedup.dedupe(
                self.KEY,
                lambda: self._populate(populate_fn),
            )
            if populated_for >= generation:
                return snapshot
            self._log(f"STALE: population for generation {populated_for} predates {generation}")

    async def _populate(
        self,
        populate_fn: Callable[[], Awaitable[Iterable[Employee]]],
    ) -> tuple[Snapshot, int]:
        async with self._lock:
            generation = self._generation
            # Another population may have completed since the miss was observed
            snapshot = self._current()
            if snapshot is not None:
                return snapshot, generation

        entries = await populate_fn()
        snapshot = Snapshot(
            entries=tuple(entries),
            fetched_at=datetime.now(timezone.utc),
            loaded_at=self._clock(),
        )

        async with self._lock:
            self._stats.populations += 1
            if generation == self._generation:
                self._snapshot = snapshot
                self._log(f"SET: {len(snapshot.entries)} entries")
            else:
                self._stats.discarded += 1
                self._log("DISCARD: invalidated during population")
        return snapshot, generation

    async def invalidate(self) -> None:
        """Drop the current snapshot; the next read repopulates."""
        async with self._lock:
            self._snapshot = None
            self._generation += 1
            self._stats.invalidations += 1
            self._log(f"INVALIDATE (generation {self._generation})")

    def peek(self) -> Snapshot | None:
        """Current valid snapshot without touching statistics or upstream."""
        return self._current()

    def _current(self) -> Snapshot | None:
        snapshot = self._snapshot
        if snapshot is None:
            return None
        if self._clock() - snapshot.loaded_at >= self._ttl.total_seconds():
            return None
        return snapshot

    def get_stats(self) -> "CacheStats":
        snapshot = self._current()
        self._stats.entries = len(snapshot.entries) if snapshot else 0
        self._stats.snapshot_age_seconds = (
            round(self._clock() - snapshot.loaded_at, 3) if snapshot else None
        )
        self._stats.in_flight = self._dedup.get_in_flight_count()
        return self._stats

    def get_dedup_stats(self) -> DeduplicatorStats:
        return self._dedup.get_stats()

    async def close(self) -> None:
        await self._dedup.cancel_all()

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[SnapshotCache] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    populations: int = 0
    invalidations: int = 0
    discarded: int = 0
    entries: int = 0
    in_flight: int = 0
    snapshot_age_seconds: float | None = None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "populations": self.populations,
            "invalidations": self.invalidations,
            "discarded": self.discarded,
            "entries": self.entries,
            "in_flight": self.in_flight,
            "snapshot_age_seconds": self.snapshot_age_seconds,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
