"""Sheets+ ─ FastAPI application
================================

This module hosts the **production ASGI application**.

Usage
-----
Run locally with::

    uvicorn sheetsplus.api.app:app --reload

The FastAPI instance is exposed as ``app``.
"""

from __future__ import annotations

# third-party
import structlog
from fastapi import APIRouter, FastAPI

# local imports
from sheetsplus.api.errors import add_exception_handlers
from sheetsplus.api.routes import admin as admin_router_module
from sheetsplus.api.routes import sessions as sessions_router_module
from sheetsplus.core.config import get_settings
from sheetsplus.core.logging import RequestLoggingMiddleware, configure_logging

# Prometheus instrumentation is an optional extra (``pip install
# sheetsplus[metrics]``); without it the service simply exposes no /metrics.
try:
    from prometheus_fastapi_instrumentator import Instrumentator  # type: ignore

    _PROM_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover – optional dependency missing
    _PROM_AVAILABLE = False

__all__: list[str] = ["app"]

# ---------------------------------------------------------------------------
# Initialise *process-wide* logging before any logger instantiation.
# ---------------------------------------------------------------------------
settings = get_settings()
configure_logging(settings.debug)
logger = structlog.get_logger(__name__)


def _register_routes(app_instance: FastAPI) -> None:
    """Include every API router into the FastAPI application."""
    routers: list[APIRouter] = [
        sessions_router_module.router,
        admin_router_module.router,
    ]
    for router in routers:
        app_instance.include_router(router)


def _create_fastapi_app() -> FastAPI:  # noqa: D401 – factory
    """Build and configure the FastAPI application."""

    app_instance = FastAPI(
        title="Sheets+ Table Extraction",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
    )

    # ------------------------------------------------------------------
    # Middleware – logging comes first so later handlers inherit context vars.
    # ------------------------------------------------------------------
    app_instance.add_middleware(RequestLoggingMiddleware)

    @app_instance.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:  # noqa: D401
        return {"message": "Sheets+ – table extraction API"}

    _register_routes(app_instance)
    add_exception_handlers(app_instance)

    # ------------------------------------------------------------------
    # Prometheus metrics – optional and gated behind PROMETHEUS_ENABLED.
    # ------------------------------------------------------------------
    if settings.prometheus_enabled and _PROM_AVAILABLE:  # pragma: no cover
        Instrumentator().instrument(app_instance).expose(
            app_instance,
            endpoint="/metrics",
            include_in_schema=False,
        )
        logger.info("prometheus_instrumentation_enabled")
    elif settings.prometheus_enabled and not _PROM_AVAILABLE:
        logger.warning(
            "prometheus_instrumentation_requested_but_package_missing",
            advice="Install the 'metrics' extra",
        )

    logger.info(
        "fastapi_app_created",
        version=settings.app_version,
        commit_sha=settings.commit_sha,
        extraction_backend=settings.extraction_backend,
    )
    return app_instance


# Instantiate once at import time.
app: FastAPI = _create_fastapi_app()
