"""
FastAPI lifespan bridge for :class:`~poolguard.lifecycle.hooks.Lifecycle`.

Usage::

    lifecycle = Lifecycle()
    pool = new_postgres_pool(lifecycle, settings.database_url)

    app = FastAPI(lifespan=lifecycle_lifespan(lifecycle, start_timeout=60))

A failing start hook propagates out of the lifespan, so the ASGI server
refuses to finish startup.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

from poolguard.core.logging import get_logger
from poolguard.execution.context import HookContext
from poolguard.lifecycle.hooks import Lifecycle

log = get_logger(__name__)


def _make_context(timeout: float | None) -> HookContext:
    if timeout is None:
        return HookContext.background()
    return HookContext.with_timeout(timeout)


def lifecycle_lifespan(
    lifecycle: Lifecycle,
    *,
    start_timeout: float | None = None,
    stop_timeout: float | None = None,
) -> Callable[[Any], AbstractAsyncContextManager[None]]:
    """Build a ``lifespan`` callable that starts and stops ``lifecycle``."""

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncIterator[None]:
        log.info("application starting")
        await lifecycle.start(_make_context(start_timeout))
        try:
            yield
        finally:
            log.info("application shutting down")
            await lifecycle.stop(_make_context(stop_timeout))

    return lifespan


__all__ = ["lifecycle_lifespan"]
