"""Handler for GET /api/search.

Receives AppState, runs the search orchestrator and returns a JSON-ready
dict. No Starlette imports; server.py handles the HTTP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from recipescout.state import AppState


async def handle(query: str | None, state: AppState) -> dict:
    """Handle a search request. Raises RecipeScoutError on a missing query."""
    log = structlog.get_logger().bind(handler="search", query=query)
    log.info("handler_called")

    stubs = state.orchestrator.search(query or "")

    # Serialise now, before yielding to the loop lets backfills mutate the stubs.
    return {"recipes": [stub.model_dump(mode="json") for stub in stubs]}
