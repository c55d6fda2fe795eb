"""Deduplicating, rate-limited work queue of string keys.

Semantics:
    - A key is held at most once: re-adding a pending key is a no-op.
    - A key handed out by ``get()`` is *in flight* until ``done()``.  Adding it
      while in flight marks it dirty; ``done()`` then makes it available again,
      so no two workers ever process the same key concurrently.
    - ``add_rate_limited()`` re-adds a key after a delay chosen by the rate
      limiter, which also counts failures per key (``num_requeues``).
    - After ``shut_down()`` no new keys are accepted, pending delayed re-adds
      are cancelled, and ``get()`` returns ``None`` once the queue is drained.

The queue is owned by the asyncio event loop: every method must be called from
the loop thread, which serialises all mutations without a lock.
"""

from __future__ import annotations

import asyncio
from collections import deque

from ingressmgr.controller.ratelimit import RateLimiter, default_controller_rate_limiter
from ingressmgr.observability.logging import get_logger
from ingressmgr.observability.metrics import (
    workqueue_adds_total,
    workqueue_depth,
    workqueue_retries_total,
)

_logger = get_logger("controller.queue")


class RateLimitingQueue:
    def __init__(self, rate_limiter: RateLimiter | None = None, name: str = "ingress-manager") -> None:
        self._rate_limiter = rate_limiter or default_controller_rate_limiter()
        self._name = name

        self._queue: deque[str] = deque()
        # Keys that need processing: pending in _queue or re-added while in flight
        self._dirty: set[str] = set()
        self._processing: set[str] = set()
        # key -> timer for a delayed add
        self._waiting: dict[str, asyncio.TimerHandle] = {}
        self._getters: deque[asyncio.Future[None]] = deque()
        self._shutting_down = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def in_flight(self) -> int:
        return len(self._processing)

    @property
    def waiting(self) -> int:
        """Keys scheduled for a delayed add."""
        return len(self._waiting)

    def __len__(self) -> int:
        return len(self._queue)

    # ------------------------------------------------------------------
    # Core queue
    # ------------------------------------------------------------------

    def add(self, key: str) -> None:
        if self._shutting_down:
            return
        if key in self._dirty:
            return
        self._dirty.add(key)
        workqueue_adds_total.labels(queue=self._name).inc()
        if key in self._processing:
            return
        self._queue.append(key)
        self._update_depth()
        self._wakeup_next()

    async def get(self) -> str | None:
        """Wait for the next key and mark it in flight.

        Returns None once the queue has been shut down and drained.
        """
        while not self._queue and not self._shutting_down:
            getter = asyncio.get_running_loop().create_future()
            self._getters.append(getter)
            try:
                await getter
            except asyncio.CancelledError:
                getter.cancel()
                try:
                    self._getters.remove(getter)
                except ValueError:
                    pass
                # We were woken but cancelled before taking the key: pass it on.
                if self._queue and not getter.cancelled():
                    self._wakeup_next()
                raise

        if not self._queue:
            return None

        key = self._queue.popleft()
        self._processing.add(key)
        self._dirty.discard(key)
        self._update_depth()
        return key

    def done(self, key: str) -> None:
        self._processing.discard(key)
        if key in self._dirty:
            self._queue.append(key)
            self._update_depth()
            self._wakeup_next()

    def shut_down(self) -> None:
        if self._shutting_down:
            return
        self._shutting_down = True
        for handle in self._waiting.values():
            handle.cancel()
        self._waiting.clear()
        while self._getters:
            getter = self._getters.popleft()
            if not getter.done():
                getter.set_result(None)
        _logger.debug("queue_shut_down", queue=self._name, pending=len(self._queue))

    # ------------------------------------------------------------------
    # Delayed and rate-limited adds
    # ------------------------------------------------------------------

    def add_after(self, key: str, delay: float) -> None:
        """Add *key* once *delay* seconds have elapsed.

        If the key is already waiting with an earlier ready time the earlier
        one is kept.
        """
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()
        ready_at = loop.time() + delay
        existing = self._waiting.get(key)
        if existing is not None:
            if existing.when() <= ready_at:
                return
            existing.cancel()
        self._waiting[key] = loop.call_at(ready_at, self._fire_delayed, key)

    def add_rate_limited(self, key: str) -> None:
        delay = self._rate_limiter.when(key)
        workqueue_retries_total.labels(queue=self._name).inc()
        _logger.debug("requeue_scheduled", queue=self._name, key=key, delay=round(delay, 3))
        self.add_after(key, delay)

    def forget(self, key: str) -> None:
        self._rate_limiter.forget(key)

    def num_requeues(self, key: str) -> int:
        return self._rate_limiter.num_requeues(key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fire_delayed(self, key: str) -> None:
        self._waiting.pop(key, None)
        self.add(key)

    def _wakeup_next(self) -> None:
        while self._getters:
            getter = self._getters.popleft()
            if not getter.done():
                getter.set_result(None)
                break

    def _update_depth(self) -> None:
        workqueue_depth.labels(queue=self._name).set(len(self._queue))
