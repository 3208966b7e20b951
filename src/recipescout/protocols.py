"""Protocol interfaces for swappable components.

Handlers, the pipeline and AppState reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight fakes for the network seams
- Future backends (e.g. a shared cache) to be swapped without changing handler code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from recipescout.models.recipe import Recipe, SearchResultStub


class RecipeCacheProtocol(Protocol):
    """Interface for the two-keyspace recipe cache service."""

    def get_recipe(self, url: str) -> Recipe | None: ...

    def set_recipe(self, url: str, recipe: Recipe) -> None: ...

    def get_search(self, query: str) -> list[SearchResultStub] | None: ...

    def set_search(self, query: str, stubs: list[SearchResultStub]) -> None: ...

    def init(self) -> None: ...

    def sweep(self) -> None: ...

    async def shutdown(self) -> None: ...


class PageFetcherProtocol(Protocol):
    """Interface for the HTTP page fetcher. Raises RecipeScoutError on failure."""

    async def fetch(self, url: str) -> str: ...


class RecipePipelineProtocol(Protocol):
    """Interface for URL → Recipe retrieval. ``None`` means the fetch failed."""

    async def fetch_recipe(self, url: str) -> Recipe | None: ...
