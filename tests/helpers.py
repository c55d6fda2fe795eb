"""Shared factories and fakes for the ingressmgr test suite.

Nothing here talks to a real cluster: informers are fed through
``apply_list`` / ``handle_watch_event`` and the remote store is a
recording fake.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from ingressmgr.cache.informer import Informer
from ingressmgr.errors import NotFoundError, ResourceClientError
from ingressmgr.models.resources import (
    INGRESS_KIND,
    SERVICE_KIND,
    IngressObject,
    OwnerReference,
    ServiceObject,
)

MARKER = "ingress/http"


# ---------------------------------------------------------------------------
# Object factories
# ---------------------------------------------------------------------------


def make_service(
    name: str = "web",
    namespace: str = "default",
    annotations: dict[str, str] | None = None,
    uid: str | None = None,
    resource_version: str = "1",
) -> ServiceObject:
    return ServiceObject(
        namespace=namespace,
        name=name,
        uid=uid if uid is not None else f"uid-{name}",
        annotations=annotations if annotations is not None else {},
        resource_version=resource_version,
    )


def make_marked_service(name: str = "web", namespace: str = "default", **kwargs: Any) -> ServiceObject:
    return make_service(name, namespace, annotations={MARKER: ""}, **kwargs)


def make_owner_ref(name: str = "web", kind: str = SERVICE_KIND, controller: bool = True) -> OwnerReference:
    return OwnerReference(
        api_version="v1",
        kind=kind,
        name=name,
        uid=f"uid-{name}",
        controller=controller,
        block_owner_deletion=controller,
    )


def make_ingress(
    name: str = "web",
    namespace: str = "default",
    owner: OwnerReference | None = None,
    owned: bool = True,
) -> IngressObject:
    refs: tuple[OwnerReference, ...] = ()
    if owner is not None:
        refs = (owner,)
    elif owned:
        refs = (make_owner_ref(name),)
    return IngressObject(namespace=namespace, name=name, ingress_class_name="nginx", owner_references=refs)


def raw_service(
    name: str = "web",
    namespace: str = "default",
    annotations: dict[str, str] | None = None,
    resource_version: str = "1",
) -> dict[str, Any]:
    """Raw camelCase Service dict as returned by list/watch."""
    return {
        "apiVersion": "v1",
        "kind": SERVICE_KIND,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "resourceVersion": resource_version,
            "annotations": annotations or {},
        },
        "spec": {"ports": [{"port": 80}]},
    }


def raw_ingress(
    name: str = "web",
    namespace: str = "default",
    owner_kind: str | None = SERVICE_KIND,
    resource_version: str = "1",
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "uid": f"ing-uid-{name}",
        "resourceVersion": resource_version,
    }
    if owner_kind is not None:
        metadata["ownerReferences"] = [
            {
                "apiVersion": "v1",
                "kind": owner_kind,
                "name": name,
                "uid": f"uid-{name}",
                "controller": True,
                "blockOwnerDeletion": True,
            }
        ]
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": INGRESS_KIND,
        "metadata": metadata,
        "spec": {"ingressClassName": "nginx", "rules": []},
    }


# ---------------------------------------------------------------------------
# Informers without a cluster
# ---------------------------------------------------------------------------


async def _no_list(**_kwargs: Any) -> Any:
    raise AssertionError("list_fn must not be called in this test")


def make_service_informer(namespace: str = "default") -> Informer[ServiceObject]:
    return Informer(SERVICE_KIND, _no_list, ServiceObject.from_dict, namespace=namespace)


def make_ingress_informer(namespace: str = "default") -> Informer[IngressObject]:
    return Informer(INGRESS_KIND, _no_list, IngressObject.from_dict, namespace=namespace)


# ---------------------------------------------------------------------------
# Remote store fake
# ---------------------------------------------------------------------------


class FakeIngressClient:
    """Records create/delete calls.

    When given an ingress informer, successful writes are echoed back as
    watch events, the way the API server would.
    """

    def __init__(
        self,
        ingresses: Informer[IngressObject] | None = None,
        create_failures: int = 0,
        delete_failures: int = 0,
        delete_not_found: bool = False,
    ) -> None:
        self.created: list[IngressObject] = []
        self.deleted: list[tuple[str, str]] = []
        self.create_attempts = 0
        self.delete_attempts = 0
        self._ingresses = ingresses
        self._create_failures = create_failures
        self._delete_failures = delete_failures
        self._delete_not_found = delete_not_found

    @property
    def calls(self) -> int:
        return len(self.created) + len(self.deleted)

    async def create(self, namespace: str, ingress: IngressObject) -> None:
        self.create_attempts += 1
        if self._create_failures > 0:
            self._create_failures -= 1
            raise ResourceClientError("create failed: etcd unavailable", status=500)
        self.created.append(ingress)
        if self._ingresses is not None:
            manifest = ingress.to_manifest()
            manifest["metadata"]["uid"] = f"ing-uid-{ingress.name}"
            manifest["metadata"]["resourceVersion"] = str(100 + len(self.created))
            self._ingresses.handle_watch_event("ADDED", manifest)

    async def delete(self, namespace: str, name: str) -> None:
        self.delete_attempts += 1
        if self._delete_not_found:
            raise NotFoundError(INGRESS_KIND, namespace, name)
        if self._delete_failures > 0:
            self._delete_failures -= 1
            raise ResourceClientError("delete failed: conflict", status=409)
        self.deleted.append((namespace, name))
        if self._ingresses is not None:
            existing = self._ingresses.store.get(namespace, name)
            if existing is not None:
                self._ingresses.handle_watch_event("DELETED", existing.to_manifest())


# ---------------------------------------------------------------------------
# Async helpers
# ---------------------------------------------------------------------------


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005) -> None:
    """Poll *predicate* until it is true; fail the test after *timeout* seconds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(interval)
