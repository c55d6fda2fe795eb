"""Pydantic response models for the health/status API."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(BaseModel):
    ready: bool
    caches_synced: bool
    workers_running: int
    workers_configured: int


class QueueStatus(BaseModel):
    name: str
    depth: int
    in_flight: int
    waiting: int
    shutting_down: bool


class CacheStatus(BaseModel):
    kind: str
    synced: bool
    objects: int


class StatusResponse(BaseModel):
    """Snapshot of controller state returned by ``GET /api/v1/status``."""

    version: str
    namespace: str
    marker_annotation: str
    queue: QueueStatus
    caches: list[CacheStatus]
    workers_running: int
    workers_configured: int
