"""Translate watch notifications into work-queue keys."""

from __future__ import annotations

from ingressmgr.controller.keys import object_key
from ingressmgr.controller.queue import RateLimitingQueue
from ingressmgr.models.events import (
    IngressDeleted,
    ServiceAdded,
    ServiceDeleted,
    ServiceUpdated,
    WatchEvent,
)
from ingressmgr.models.resources import SERVICE_KIND
from ingressmgr.observability.logging import get_logger

_logger = get_logger("controller.router")


class EventRouter:
    """Enqueues the key of every notification the reconciler must look at.

    Service add/update always enqueue; Service delete enqueues when
    ``enqueue_on_service_delete`` is set.  An Ingress delete enqueues only when
    the Ingress is controlled by an object of ``owner_kind``.  Ingress add and
    update are never routed.
    """

    def __init__(
        self,
        queue: RateLimitingQueue,
        owner_kind: str = SERVICE_KIND,
        enqueue_on_service_delete: bool = True,
    ) -> None:
        self._queue = queue
        self._owner_kind = owner_kind
        self._enqueue_on_service_delete = enqueue_on_service_delete

    def route(self, event: WatchEvent) -> str | None:
        """Enqueue the key for *event*; return it, or None if ignored."""
        key: str | None = None
        if isinstance(event, ServiceAdded):
            key = object_key(event.service.namespace, event.service.name)
        elif isinstance(event, ServiceUpdated):
            key = object_key(event.new.namespace, event.new.name)
        elif isinstance(event, ServiceDeleted):
            if self._enqueue_on_service_delete:
                key = object_key(event.service.namespace, event.service.name)
        elif isinstance(event, IngressDeleted):
            if event.ingress.is_controlled_by(self._owner_kind):
                key = object_key(event.ingress.namespace, event.ingress.name)

        if key is None:
            _logger.debug("event_ignored", event_type=type(event).__name__)
            return None

        self._queue.add(key)
        return key
