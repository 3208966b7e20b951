from __future__ import annotations

from recipescout.models.cache import CacheEntry
from recipescout.models.recipe import Recipe, SearchResultStub

__all__ = [
    # recipe
    "Recipe",
    "SearchResultStub",
    # cache
    "CacheEntry",
]
