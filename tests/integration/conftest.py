"""Integration test fixtures.

Provides a fully wired AppState (real cache, real httpx client whose traffic
respx intercepts) and an httpx client talking to the Starlette app through
ASGITransport, so no server is started.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from recipescout.config import Settings
from recipescout.server import build_state, create_app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from recipescout.state import AppState


@pytest.fixture()
async def app_state() -> AsyncIterator[AppState]:
    """AppState built exactly as the lifespan builds it, minus the sweep task."""
    state = build_state(Settings())
    yield state
    await state.orchestrator.shutdown()
    await state.cache.shutdown()
    if state.http_client is not None:
        await state.http_client.aclose()


@pytest.fixture()
async def api_client(app_state: AppState) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(state=app_state)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    ) as client:
        yield client
