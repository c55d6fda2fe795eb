"""FastAPI application factory for ingressmgr.

Usage::

    from ingressmgr.api.app import create_app

    app = create_app(controller=controller, config=config)

Probes (``/healthz``, ``/readyz``) and ``/metrics`` live at the root so
kubelet and Prometheus can reach them without a prefix; everything else is
under ``/api/v1``.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ingressmgr.api.routes import probe_router, router
from ingressmgr.api.schemas import ErrorResponse

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"

_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


def create_app(controller: Any, config: Any = None) -> FastAPI:
    """Create and configure the ingressmgr FastAPI application.

    Args:
        controller: IngressController instance.
        config:     IngressManagerConfig, kept on app.state for handlers.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from ingressmgr import __version__

    app = FastAPI(
        title="ingressmgr",
        summary="Service-to-Ingress controller",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url=None,
        openapi_url="/api/v1/openapi.json",
    )

    app.state.controller = controller
    app.state.config = config

    app.include_router(probe_router)
    app.include_router(router, prefix=_API_PREFIX)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
                detail=str(exc.detail),
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
