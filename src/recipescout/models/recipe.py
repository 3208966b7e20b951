from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Recipe(BaseModel):
    """Normalised recipe detail extracted from a known site's page."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    ingredients: tuple[str, ...] = ()
    steps: tuple[str, ...] = ()
    image: str | None = None  # Cover image URL as found in the markup


class SearchResultStub(BaseModel):
    """One search result per known site, returned before detail is fetched.

    ``content`` starts as ``None`` and is replaced exactly once, in place,
    when the background backfill for ``url`` succeeds.
    """

    title: str
    source: str  # Site label, e.g. "Xiachufang"
    url: str  # Deep-link search URL on the source site
    content: Recipe | None = None
