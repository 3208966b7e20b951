"""In-memory TTL cache for recipe detail and search results.

Entries are stamped once on write and never refreshed on read. ``get``
treats an expired entry as a miss but leaves it in place; only the
periodic sweep reclaims memory, so an expired entry can linger for up to
one extra sweep interval. There is no size bound and no LRU.

Everything here runs on the event loop thread and never awaits between a
read and the write that depends on it, so no locking is needed.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog

from recipescout.models.cache import CacheEntry
from recipescout.schedulers import run_cache_sweep_scheduler

if TYPE_CHECKING:
    from collections.abc import Callable

    from recipescout.models.recipe import Recipe, SearchResultStub

log = structlog.get_logger()

K = TypeVar("K")
V = TypeVar("V")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TTLCache(Generic[K, V]):
    """Key → value store with a single fixed time-to-live."""

    def __init__(
        self,
        ttl: timedelta,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}

    def get(self, key: K) -> V | None:
        """Return the value if it was written less than ``ttl`` ago."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl:
            return None
        return entry.data

    def set(self, key: K, value: V) -> None:
        """Store ``value``, replacing any existing entry and its timestamp."""
        self._entries[key] = CacheEntry(data=value, timestamp=self._clock())

    def entry(self, key: K) -> CacheEntry[V] | None:
        """Raw entry lookup, ignoring expiry."""
        return self._entries.get(key)

    def sweep(self) -> int:
        """Delete entries older than ``ttl``. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now - entry.timestamp > self.ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


class RecipeCache:
    """Process-wide cache service implementing RecipeCacheProtocol.

    Holds two independent keyspaces: recipe detail keyed by source URL and
    search stub lists keyed by the literal query string. Keys are matched
    exactly, with no normalisation.
    """

    def __init__(
        self,
        ttl: timedelta,
        *,
        sweep_interval: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ttl = ttl
        self.sweep_interval = sweep_interval or ttl
        self.recipes: TTLCache[str, Recipe] = TTLCache(ttl, clock=clock)
        self.search_results: TTLCache[str, list[SearchResultStub]] = TTLCache(ttl, clock=clock)
        self._sweep_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Recipe detail
    # ------------------------------------------------------------------

    def get_recipe(self, url: str) -> Recipe | None:
        return self.recipes.get(url)

    def set_recipe(self, url: str, recipe: Recipe) -> None:
        self.recipes.set(url, recipe)

    # ------------------------------------------------------------------
    # Search results
    # ------------------------------------------------------------------

    def get_search(self, query: str) -> list[SearchResultStub] | None:
        return self.search_results.get(query)

    def set_search(self, query: str, stubs: list[SearchResultStub]) -> None:
        self.search_results.set(query, stubs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Start the periodic sweep. Must be called from a running event loop."""
        if self._sweep_task is not None:
            return
        self._sweep_task = asyncio.create_task(
            run_cache_sweep_scheduler(self, self.sweep_interval.total_seconds())
        )
        log.info(
            "cache_started",
            ttl_seconds=self.ttl.total_seconds(),
            sweep_interval_seconds=self.sweep_interval.total_seconds(),
        )

    def sweep(self) -> None:
        """Evict expired entries from both keyspaces."""
        recipes_deleted = self.recipes.sweep()
        searches_deleted = self.search_results.sweep()
        log.info(
            "cache_sweep_complete",
            recipes_deleted=recipes_deleted,
            searches_deleted=searches_deleted,
            recipes_remaining=len(self.recipes),
            searches_remaining=len(self.search_results),
        )

    async def shutdown(self) -> None:
        """Stop the sweep task and drop all entries."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
        self.recipes.clear()
        self.search_results.clear()
        log.info("cache_stopped")
