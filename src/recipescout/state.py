"""Application state container.

AppState is created once at server startup (inside the Starlette lifespan)
and injected into every request handler through ``app.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from recipescout.config import Settings
    from recipescout.protocols import RecipeCacheProtocol, RecipePipelineProtocol
    from recipescout.search import SearchOrchestrator


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every request handler."""

    settings: Settings
    cache: RecipeCacheProtocol
    pipeline: RecipePipelineProtocol
    orchestrator: SearchOrchestrator
    http_client: httpx.AsyncClient | None = None
