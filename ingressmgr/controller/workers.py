"""Fixed-size pool of asyncio workers draining the work queue."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

from ingressmgr.controller.queue import RateLimitingQueue
from ingressmgr.observability.logging import get_logger, reconcile_context
from ingressmgr.observability.metrics import worker_restarts_total

_logger = get_logger("controller.workers")

DEFAULT_WORKERS = 5
DEFAULT_RESTART_DELAY = 60.0


class WorkerPool:
    """Runs ``workers`` independent loops: get a key, handle it, mark it done.

    Each loop is supervised: if it crashes it is logged and restarted after
    ``restart_delay`` seconds, unless the queue has been shut down meanwhile.
    Stopping shuts the queue down; in-flight keys are handled to completion.
    """

    def __init__(
        self,
        queue: RateLimitingQueue,
        handler: Callable[[str], Awaitable[None]],
        workers: int = DEFAULT_WORKERS,
        restart_delay: float = DEFAULT_RESTART_DELAY,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._queue = queue
        self._handler = handler
        self._workers = workers
        self._restart_delay = restart_delay
        self._tasks: list[asyncio.Task[None]] = []
        self._stopped = asyncio.Event()

    @property
    def size(self) -> int:
        return self._workers

    @property
    def running(self) -> int:
        """Number of worker tasks still alive."""
        return sum(1 for task in self._tasks if not task.done())

    def start(self) -> None:
        if self._tasks:
            return
        for worker_id in range(self._workers):
            task = asyncio.create_task(self._supervise(worker_id), name=f"worker-{worker_id}")
            self._tasks.append(task)
        _logger.info("workers_started", workers=self._workers)

    async def stop(self) -> None:
        self._stopped.set()
        self._queue.shut_down()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        _logger.info("workers_stopped")

    async def join(self) -> None:
        """Wait until every worker has exited."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _supervise(self, worker_id: int) -> None:
        while True:
            try:
                await self._run(worker_id)
                return
            except Exception:
                _logger.exception("worker_crashed", worker=worker_id)
                worker_restarts_total.inc()
            if self._queue.shutting_down:
                return
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=self._restart_delay)
            if self._stopped.is_set() or self._queue.shutting_down:
                return
            _logger.info("worker_restarting", worker=worker_id)

    async def _run(self, worker_id: int) -> None:
        while True:
            key = await self._queue.get()
            if key is None:
                _logger.debug("worker_exiting", worker=worker_id)
                return
            try:
                with reconcile_context(key, worker_id):
                    await self._handler(key)
            finally:
                self._queue.done(key)
