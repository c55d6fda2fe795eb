"""Level-triggered sync of one Service/Ingress pair.

Every call recomputes desired vs actual state from the caches, never from the
notification that queued the key, so coalesced or dropped notifications cannot
cause permanent divergence.  Re-running on a converged pair issues no calls.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, TypeVar

from ingressmgr.controller.desired import IngressTemplate, build_ingress
from ingressmgr.controller.keys import split_key
from ingressmgr.models.resources import SERVICE_KIND, IngressObject, ServiceObject
from ingressmgr.observability.logging import get_logger

_logger = get_logger("controller.reconciler")

T_co = TypeVar("T_co", covariant=True)


class ObjectLookup(Protocol[T_co]):
    def get(self, namespace: str, name: str) -> T_co | None: ...


class IngressWriter(Protocol):
    async def create(self, namespace: str, ingress: IngressObject) -> None: ...

    async def delete(self, namespace: str, name: str) -> None: ...


class SyncAction(StrEnum):
    """What a reconciliation did to the remote store."""

    CREATED = "created"
    DELETED = "deleted"
    NONE = "none"


class Reconciler:
    def __init__(
        self,
        services: ObjectLookup[ServiceObject],
        ingresses: ObjectLookup[IngressObject],
        client: IngressWriter,
        template: IngressTemplate | None = None,
        marker_annotation: str = "ingress/http",
    ) -> None:
        self._services = services
        self._ingresses = ingresses
        self._client = client
        self._template = template or IngressTemplate()
        self._marker = marker_annotation

    async def reconcile(self, key: str) -> SyncAction:
        """Converge the Ingress for *key* towards its Service.

        Raises:
            InvalidKeyError: *key* is malformed.
            ConstructionError: the desired Ingress cannot be built.
            Any error from the client, unmodified.
        """
        namespace, name = split_key(key)

        service = self._services.get(namespace, name)
        desired = service is not None and service.has_annotation(self._marker)
        ingress = self._ingresses.get(namespace, name)

        if desired and ingress is None:
            assert service is not None
            await self._client.create(namespace, build_ingress(service, self._template))
            _logger.info("ingress_created", namespace=namespace, name=name)
            return SyncAction.CREATED

        if not desired and ingress is not None:
            owner = ingress.controller_ref()
            if owner is None or owner.kind != SERVICE_KIND or owner.name != name:
                _logger.debug("ingress_not_managed", namespace=namespace, name=name)
                return SyncAction.NONE
            await self._client.delete(namespace, name)
            _logger.info(
                "ingress_deleted",
                namespace=namespace,
                name=name,
                service_present=service is not None,
            )
            return SyncAction.DELETED

        return SyncAction.NONE
