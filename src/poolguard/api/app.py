"""
FastAPI application factory.

``create_app()`` is the composition root: it constructs the database pool,
binds it to a :class:`~poolguard.lifecycle.hooks.Lifecycle`, hands that
lifecycle to FastAPI as its lifespan, and mounts the health endpoints.

Startup therefore blocks until the pool answers a probe (or the retry
budget is spent, in which case startup fails).

Tags:
    poolguard, api, app-factory, composition-root, FastAPI
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from poolguard import __version__
from poolguard.core.config import PoolguardSettings, get_settings
from poolguard.core.logging import get_logger
from poolguard.lifecycle.fastapi import lifecycle_lifespan
from poolguard.lifecycle.hooks import Lifecycle
from poolguard.resources.managed import ManagedResource, Resource, manage_resource
from poolguard.resources.postgres import PostgresPool

log = get_logger(__name__)


class HealthResponse(BaseModel):
    status: Literal["ok", "unavailable"]
    resource: str
    state: str
    version: str


def _postgres_factory(settings: PoolguardSettings) -> Callable[[], PostgresPool]:
    return lambda: PostgresPool(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        ping_timeout=settings.ping_timeout_seconds,
    )


def _managed(request: Request) -> ManagedResource[Any]:
    return request.app.state.managed


def create_health_router() -> APIRouter:
    """Health endpoints reporting the managed resource's lifecycle state.

    ``GET /health``        State of the resource; 503 unless active.
    ``GET /health/ready``  Readiness probe; 503 unless active.
    ``GET /health/live``   Liveness probe; always 200.
    """
    router = APIRouter(tags=["health"])

    def _respond(managed: ManagedResource[Any]) -> JSONResponse:
        body = HealthResponse(
            status="ok" if managed.is_active else "unavailable",
            resource=managed.name,
            state=managed.state.value,
            version=__version__,
        )
        return JSONResponse(content=body.model_dump(), status_code=200 if managed.is_active else 503)

    @router.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> JSONResponse:
        return _respond(_managed(request))

    @router.get("/health/ready", response_model=HealthResponse)
    async def readiness(request: Request) -> JSONResponse:
        return _respond(_managed(request))

    @router.get("/health/live")
    async def liveness() -> dict[str, str]:
        return {"status": "ok"}

    return router


def create_app(
    *,
    settings: PoolguardSettings | None = None,
    resource_factory: Callable[[], Resource] | None = None,
    resource_name: str = "postgres",
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : PoolguardSettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    resource_factory : Callable[[], Resource] | None
        Builds the managed resource.  Defaults to a :class:`PostgresPool`
        configured from ``settings``.

    Raises
    ------
    ConfigError, ConstructionError
        When the resource cannot be constructed.
    """
    settings = settings or get_settings()
    lifecycle = Lifecycle(logger=log)

    managed = manage_resource(
        lifecycle,
        resource_factory or _postgres_factory(settings),
        name=resource_name,
        policy=settings.retry_policy(),
        logger=log,
    )

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        lifespan=lifecycle_lifespan(
            lifecycle,
            start_timeout=settings.start_timeout_seconds,
            stop_timeout=settings.stop_timeout_seconds,
        ),
    )

    app.state.settings = settings
    app.state.lifecycle = lifecycle
    app.state.managed = managed
    app.state.pool = managed.resource

    app.include_router(create_health_router(), prefix=settings.api_prefix)
    return app


__all__ = ["HealthResponse", "create_app", "create_health_router"]
