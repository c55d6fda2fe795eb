"""Health, readiness, status and metrics routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ingressmgr.api.schemas import (
    CacheStatus,
    HealthResponse,
    QueueStatus,
    ReadinessResponse,
    StatusResponse,
)

probe_router = APIRouter()
router = APIRouter()


def _version() -> str:
    from ingressmgr import __version__

    return __version__


@probe_router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok", version=_version())


@probe_router.get("/readyz", response_model=ReadinessResponse)
async def readyz(request: Request) -> Any:
    controller = request.app.state.controller
    synced = bool(controller.caches_synced)
    running = controller.workers.running
    configured = controller.workers.size
    body = ReadinessResponse(
        ready=synced and running == configured,
        caches_synced=synced,
        workers_running=running,
        workers_configured=configured,
    )
    if not body.ready:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body


@probe_router.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    controller = request.app.state.controller
    queue = controller.queue
    return StatusResponse(
        version=_version(),
        namespace=controller.config.namespace,
        marker_annotation=controller.config.marker_annotation,
        queue=QueueStatus(
            name=queue.name,
            depth=len(queue),
            in_flight=queue.in_flight,
            waiting=queue.waiting,
            shutting_down=queue.shutting_down,
        ),
        caches=[
            CacheStatus(kind=informer.kind, synced=informer.has_synced, objects=len(informer.store))
            for informer in (controller.services, controller.ingresses)
        ],
        workers_running=controller.workers.running,
        workers_configured=controller.workers.size,
    )
