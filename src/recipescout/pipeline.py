"""Recipe fetch pipeline: cache → network → parse → extract → cache.

The public contract is "Recipe or None". Every upstream problem (unknown
site, timeout, network error, non-2xx status, unparseable markup) is logged
and coalesced into ``None`` here, so one bad site can never fault a caller
that fans out over several URLs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from bs4 import ParserRejectedMarkup

from recipescout.errors import RecipeScoutError
from recipescout.sites import SiteKind, extract, match_site, parse_document

if TYPE_CHECKING:
    from recipescout.models.recipe import Recipe
    from recipescout.protocols import PageFetcherProtocol, RecipeCacheProtocol


class RecipePipeline:
    """Implements RecipePipelineProtocol on top of a cache and a page fetcher.

    Concurrent misses for the same URL are not coalesced: each performs its
    own fetch and the last write to the cache wins.
    """

    def __init__(self, cache: RecipeCacheProtocol, fetcher: PageFetcherProtocol) -> None:
        self._cache = cache
        self._fetcher = fetcher

    async def fetch_recipe(self, url: str) -> Recipe | None:
        log = structlog.get_logger().bind(url=url)

        cached = self._cache.get_recipe(url)
        if cached is not None:
            log.debug("cache_hit", keyspace="recipes")
            return cached

        site = match_site(url)
        if site is SiteKind.UNKNOWN:
            log.info("site_not_supported")
            return None

        log.info("cache_miss_fetching", site=site)
        try:
            raw = await self._fetcher.fetch(url)
        except RecipeScoutError as exc:
            log.warning(
                "recipe_fetch_failed",
                code=exc.code,
                message=exc.message,
                recoverable=exc.recoverable,
            )
            return None

        try:
            document = parse_document(raw)
        except ParserRejectedMarkup:
            log.warning("recipe_parse_failed", site=site, exc_info=True)
            return None

        recipe = extract(url, document)
        if recipe is None:
            log.info("site_not_supported")
            return None

        self._cache.set_recipe(url, recipe)
        log.info(
            "recipe_extracted",
            site=site,
            ingredients=len(recipe.ingredients),
            steps=len(recipe.steps),
        )
        return recipe
