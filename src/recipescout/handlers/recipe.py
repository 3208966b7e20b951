"""Handler for GET /api/recipe.

Receives AppState, runs the fetch pipeline and returns the recipe as a
JSON-ready dict. No Starlette imports; server.py handles the HTTP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from recipescout.errors import ErrorCode, RecipeScoutError

if TYPE_CHECKING:
    from recipescout.state import AppState


async def handle(url: str | None, state: AppState) -> dict:
    """Handle a recipe detail request."""
    log = structlog.get_logger().bind(handler="recipe", url=url)
    log.info("handler_called")

    if not url:
        raise RecipeScoutError(
            code=ErrorCode.INVALID_INPUT,
            message="Please provide a recipe URL",
            recoverable=False,
        )

    recipe = await state.pipeline.fetch_recipe(url)
    if recipe is None:
        raise RecipeScoutError(
            code=ErrorCode.RECIPE_NOT_FOUND,
            message="Unable to fetch recipe content",
            recoverable=True,
        )

    return recipe.model_dump(mode="json")
