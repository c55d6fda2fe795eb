"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from ingressmgr.models.config import (
    APIConfig,
    ControllerConfig,
    IngressManagerConfig,
    IngressTemplateConfig,
    LogConfig,
    RateLimitConfig,
)

_PATH_TYPES = {"Prefix", "Exact", "ImplementationSpecific"}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"INGRESSMGR_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_path_type(value: str) -> str:
    if value not in _PATH_TYPES:
        raise ValueError(f"Invalid path type: {value}. Must be one of {_PATH_TYPES}")
    return value


def _validate_non_empty(key: str, value: str) -> str:
    if not value.strip():
        raise ValueError(f"INGRESSMGR_{key} must not be empty")
    return value


def load_config() -> IngressManagerConfig:
    """Load configuration from INGRESSMGR_* environment variables."""
    return IngressManagerConfig(
        controller=ControllerConfig(
            namespace=_validate_non_empty("NAMESPACE", _env("NAMESPACE", "default")),
            workers=_env_int("WORKERS", 5, min_val=1, max_val=64),
            max_retries=_env_int("MAX_RETRIES", 10, min_val=0, max_val=100),
            worker_restart_delay=_env_float("WORKER_RESTART_DELAY", 60.0, min_val=0.0),
            cache_sync_timeout=_env_float("CACHE_SYNC_TIMEOUT", 60.0, min_val=1.0),
            resync_period=_env_float("RESYNC_PERIOD", 0.0, min_val=0.0),
            enqueue_on_service_delete=_env_bool("ENQUEUE_ON_SERVICE_DELETE", True),
            marker_annotation=_validate_non_empty(
                "MARKER_ANNOTATION", _env("MARKER_ANNOTATION", "ingress/http")
            ),
        ),
        ingress=IngressTemplateConfig(
            host=_env("INGRESS_HOST", "example.com"),
            ingress_class=_env("INGRESS_CLASS", "nginx"),
            path=_env("INGRESS_PATH", "/"),
            path_type=_validate_path_type(_env("INGRESS_PATH_TYPE", "Prefix")),
            backend_port=_env_int("BACKEND_PORT", 80, min_val=1, max_val=65535),
        ),
        rate_limit=RateLimitConfig(
            base_delay=_env_float("RATE_LIMIT_BASE_DELAY", 0.005, min_val=0.0),
            max_delay=_env_float("RATE_LIMIT_MAX_DELAY", 1000.0, min_val=0.0),
            qps=_env_float("RATE_LIMIT_QPS", 10.0, min_val=0.001),
            burst=_env_int("RATE_LIMIT_BURST", 100, min_val=1),
        ),
        api=APIConfig(
            enabled=_env_bool("API_ENABLED", True),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
