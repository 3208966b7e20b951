"""Search orchestration: immediate stubs, background detail backfill.

``search`` never touches the network. On a cache miss it synthesises one
stub per known site, caches the list and returns it; detail for each stub
is then fetched by detached tasks that write the Recipe into the very stub
objects held by the cache entry. The entry keeps its original timestamp.

Backfill tasks are created with ``asyncio.create_task`` and only start
running once the caller yields to the event loop, so a caller that
serialises the returned list before awaiting sees the pre-backfill state.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from recipescout.errors import ErrorCode, RecipeScoutError
from recipescout.models.recipe import SearchResultStub
from recipescout.sites import SITES

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from recipescout.protocols import RecipeCacheProtocol, RecipePipelineProtocol

log = structlog.get_logger()


def build_stubs(query: str) -> list[SearchResultStub]:
    """One stub per known site, in site declaration order."""
    return [
        SearchResultStub(
            title=rules.stub_title(query),
            source=rules.source,
            url=rules.search_url(query),
        )
        for rules in SITES.values()
    ]


class SearchOrchestrator:
    def __init__(self, cache: RecipeCacheProtocol, pipeline: RecipePipelineProtocol) -> None:
        self._cache = cache
        self._pipeline = pipeline
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_backfills(self) -> int:
        return len(self._tasks)

    def search(self, query: str) -> list[SearchResultStub]:
        """Return the stub list for ``query``, scheduling backfill on a miss.

        A cache hit returns the cached list object itself, with whatever
        content earlier backfills have filled in so far.
        """
        if not query:
            raise RecipeScoutError(
                code=ErrorCode.INVALID_INPUT,
                message="Please provide a search keyword",
                recoverable=False,
            )

        cached = self._cache.get_search(query)
        if cached is not None:
            log.info("cache_hit", keyspace="search_results", query=query)
            return cached

        stubs = build_stubs(query)
        self._cache.set_search(query, stubs)
        log.info("search_stubs_created", query=query, count=len(stubs))

        for stub in stubs:
            if stub.content is None:
                self._spawn(self._backfill(stub))
        return stubs

    async def drain(self) -> None:
        """Wait until every backfill scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight backfills. Their stubs keep ``content=None``."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            log.info("backfill_cancelled", count=len(tasks))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        # Keep a strong reference until done; the loop only holds weak ones.
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _backfill(self, stub: SearchResultStub) -> None:
        """Fetch detail for one stub and attach it in place.

        Fire-and-forget: all exceptions are caught and logged. On failure
        the stub simply keeps ``content=None``.
        """
        backfill_log = log.bind(url=stub.url, source=stub.source)
        try:
            recipe = await self._pipeline.fetch_recipe(stub.url)
        except Exception:
            backfill_log.warning("backfill_failed", exc_info=True)
            return

        if recipe is None:
            backfill_log.info("backfill_empty")
            return

        # Whole-field replacement; readers see either None or a full Recipe.
        stub.content = recipe
        backfill_log.info("backfill_complete")
