"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ControllerConfig:
    """Work queue, worker pool and retry configuration."""

    namespace: str = "default"
    workers: int = 5
    max_retries: int = 10
    worker_restart_delay: float = 60.0
    cache_sync_timeout: float = 60.0
    resync_period: float = 0.0
    enqueue_on_service_delete: bool = True
    marker_annotation: str = "ingress/http"


@dataclass
class IngressTemplateConfig:
    """Shape of the Ingress created for every annotated Service."""

    host: str = "example.com"
    ingress_class: str = "nginx"
    path: str = "/"
    path_type: str = "Prefix"
    backend_port: int = 80


@dataclass
class RateLimitConfig:
    """Requeue backoff: per-key exponential delay combined with an overall token bucket."""

    base_delay: float = 0.005
    max_delay: float = 1000.0
    qps: float = 10.0
    burst: int = 100


@dataclass
class APIConfig:
    """Health/metrics HTTP server configuration."""

    enabled: bool = True
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class IngressManagerConfig:
    """Top-level ingressmgr configuration."""

    controller: ControllerConfig = field(default_factory=ControllerConfig)
    ingress: IngressTemplateConfig = field(default_factory=IngressTemplateConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
