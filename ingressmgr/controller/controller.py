"""Wires the watch caches, router, queue, reconciler and workers together."""

from __future__ import annotations

import asyncio

from ingressmgr.cache.informer import Informer, wait_for_cache_sync
from ingressmgr.controller.desired import IngressTemplate
from ingressmgr.controller.queue import RateLimitingQueue
from ingressmgr.controller.ratelimit import RateLimiter
from ingressmgr.controller.reconciler import IngressWriter, Reconciler
from ingressmgr.controller.retry import RetryPolicy
from ingressmgr.controller.router import EventRouter
from ingressmgr.controller.workers import WorkerPool
from ingressmgr.models.config import ControllerConfig
from ingressmgr.models.events import IngressDeleted, ServiceAdded, ServiceDeleted, ServiceUpdated
from ingressmgr.models.resources import IngressObject, ServiceObject
from ingressmgr.observability.logging import get_logger

_logger = get_logger("controller")

QUEUE_NAME = "ingress-manager"


class IngressController:
    """Keeps one Ingress per marked Service in a single namespace.

    Subscriptions are registered at construction, before the informers start,
    so the initial list is delivered as add notifications and every existing
    Service is reconciled once after startup.
    """

    def __init__(
        self,
        services: Informer[ServiceObject],
        ingresses: Informer[IngressObject],
        client: IngressWriter,
        config: ControllerConfig | None = None,
        template: IngressTemplate | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.config = config or ControllerConfig()
        self.services = services
        self.ingresses = ingresses

        self.queue = RateLimitingQueue(rate_limiter, name=QUEUE_NAME)
        self.router = EventRouter(
            self.queue,
            enqueue_on_service_delete=self.config.enqueue_on_service_delete,
        )
        self.reconciler = Reconciler(
            services.store,
            ingresses.store,
            client,
            template=template,
            marker_annotation=self.config.marker_annotation,
        )
        self.retry = RetryPolicy(self.queue, self.reconciler.reconcile, max_retries=self.config.max_retries)
        self.workers = WorkerPool(
            self.queue,
            self.retry.process,
            workers=self.config.workers,
            restart_delay=self.config.worker_restart_delay,
        )

        services.subscribe(
            on_add=lambda svc: self.router.route(ServiceAdded(svc)),
            on_update=lambda old, new: self.router.route(ServiceUpdated(old, new)),
            on_delete=lambda svc: self.router.route(ServiceDeleted(svc)),
        )
        ingresses.subscribe(on_delete=lambda ing: self.router.route(IngressDeleted(ing)))

    @property
    def caches_synced(self) -> bool:
        return self.services.has_synced and self.ingresses.has_synced

    async def wait_for_cache_sync(self, timeout: float | None = None) -> None:
        """Raises TimeoutError if the caches do not sync in time."""
        await wait_for_cache_sync(
            self.services,
            self.ingresses,
            timeout=timeout if timeout is not None else self.config.cache_sync_timeout,
        )

    def start(self) -> None:
        """Start the workers. The caches must already be synced."""
        self.workers.start()
        _logger.info(
            "controller_started",
            namespace=self.config.namespace,
            workers=self.config.workers,
            marker=self.config.marker_annotation,
        )

    async def stop(self) -> None:
        await self.workers.stop()
        _logger.info("controller_stopped")

    async def run(self, stop_event: asyncio.Event) -> None:
        """Wait for sync, start the workers and run until *stop_event* is set."""
        await self.wait_for_cache_sync()
        self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()
