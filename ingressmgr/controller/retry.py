"""Retry policy wrapped around every reconciliation.

success            -> forget the key's failure count
NotFoundError      -> the object is already gone; same as success
PermanentError     -> log once, forget, never requeue
anything else      -> requeue with backoff while the key has fewer than
                      ``max_retries`` requeues; otherwise log, drop and forget
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from ingressmgr.controller.queue import RateLimitingQueue
from ingressmgr.controller.reconciler import SyncAction
from ingressmgr.errors import NotFoundError, PermanentError
from ingressmgr.observability.logging import get_logger
from ingressmgr.observability.metrics import (
    keys_dropped_total,
    reconcile_duration_seconds,
    reconcile_total,
)

_logger = get_logger("controller.retry")

DEFAULT_MAX_RETRIES = 10


class RetryPolicy:
    def __init__(
        self,
        queue: RateLimitingQueue,
        reconcile: Callable[[str], Awaitable[SyncAction]],
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._queue = queue
        self._reconcile = reconcile
        self._max_retries = max_retries

    async def process(self, key: str) -> None:
        """Reconcile *key* and decide its fate. Never raises."""
        start = time.monotonic()
        try:
            action = await self._reconcile(key)
        except NotFoundError as exc:
            reconcile_total.labels(action=SyncAction.NONE, outcome="not_found").inc()
            _logger.debug("reconcile_target_gone", key=key, error=str(exc))
            self._queue.forget(key)
        except PermanentError as exc:
            reconcile_total.labels(action=SyncAction.NONE, outcome="permanent_error").inc()
            keys_dropped_total.labels(reason="permanent_error").inc()
            _logger.error("reconcile_permanent_error", key=key, error=str(exc))
            self._queue.forget(key)
        except Exception as exc:
            reconcile_total.labels(action=SyncAction.NONE, outcome="error").inc()
            self._handle_error(key, exc)
        else:
            reconcile_total.labels(action=action, outcome="success").inc()
            self._queue.forget(key)
        finally:
            reconcile_duration_seconds.observe(time.monotonic() - start)

    def _handle_error(self, key: str, exc: Exception) -> None:
        retries = self._queue.num_requeues(key)
        if retries < self._max_retries:
            self._queue.add_rate_limited(key)
            _logger.warning(
                "reconcile_failed",
                key=key,
                error=str(exc),
                error_type=type(exc).__name__,
                retries=retries + 1,
            )
            return

        keys_dropped_total.labels(reason="max_retries").inc()
        _logger.error(
            "reconcile_dropped",
            key=key,
            error=str(exc),
            error_type=type(exc).__name__,
            retries=retries,
        )
        self._queue.forget(key)
