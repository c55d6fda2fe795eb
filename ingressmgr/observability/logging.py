"""structlog setup for ingressmgr.

Every log line is one JSON object on stderr:

    {"event": "ingress_created", "component": "controller.reconciler",
     "key": "default/web", "worker": 2, "level": "info", "ts": "..."}

``key`` and ``worker`` come from ``reconcile_context`` and are attached to
everything logged while a worker handles that key.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog

# Chatty third-party loggers, kept at WARNING unless running at debug.
_QUIET_LOGGERS = ("kubernetes_asyncio", "aiohttp", "uvicorn", "uvicorn.error")


def setup_logging(level: str = "info") -> None:
    """Configure structlog for JSON output to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    third_party_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def reconcile_context(key: str, worker: int) -> AbstractContextManager[Any]:
    """Bind *key* and *worker* to every log line emitted inside the block.

    Context variables are per asyncio task, so concurrent workers never see
    each other's bindings.
    """
    return structlog.contextvars.bound_contextvars(key=key, worker=worker)
