"""Background scheduler coroutine for cache sweeps."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from recipescout.protocols import RecipeCacheProtocol

log = structlog.get_logger()


async def run_cache_sweep_scheduler(cache: RecipeCacheProtocol, interval_seconds: float) -> None:
    """Sweep expired cache entries every ``interval_seconds`` until cancelled.

    Runs independently of request traffic. A failing sweep is logged and the
    loop carries on with the next interval.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            cache.sweep()
        except Exception:
            log.warning("cache_sweep_error", exc_info=True)
