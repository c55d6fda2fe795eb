"""Typed views of the Kubernetes objects the controller reads and writes.

Raw API payloads (camelCase dicts from list/watch responses) are decoded into
these dataclasses at the watch-cache boundary, so the controller core never
inspects untyped objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SERVICE_KIND = "Service"
SERVICE_API_VERSION = "v1"
INGRESS_KIND = "Ingress"
INGRESS_API_VERSION = "networking.k8s.io/v1"


def _metadata(raw: dict[str, Any]) -> dict[str, Any]:
    metadata = raw.get("metadata") or {}
    return metadata if isinstance(metadata, dict) else {}


@dataclass(frozen=True)
class OwnerReference:
    """Back-pointer from a dependent object to the object it exists for."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = False
    block_owner_deletion: bool = False

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OwnerReference:
        return cls(
            api_version=str(raw.get("apiVersion", "")),
            kind=str(raw.get("kind", "")),
            name=str(raw.get("name", "")),
            uid=str(raw.get("uid", "")),
            controller=bool(raw.get("controller", False)),
            block_owner_deletion=bool(raw.get("blockOwnerDeletion", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
            "controller": self.controller,
            "blockOwnerDeletion": self.block_owner_deletion,
        }


@dataclass(frozen=True)
class ServiceObject:
    """The watched source object. Never mutated by the controller."""

    namespace: str
    name: str
    uid: str = ""
    annotations: dict[str, str] = field(default_factory=dict)
    resource_version: str = ""

    def has_annotation(self, key: str) -> bool:
        """Presence check only; the annotation value is never inspected."""
        return key in self.annotations

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ServiceObject:
        metadata = _metadata(raw)
        return cls(
            namespace=str(metadata.get("namespace", "")),
            name=str(metadata.get("name", "")),
            uid=str(metadata.get("uid", "")),
            annotations=dict(metadata.get("annotations") or {}),
            resource_version=str(metadata.get("resourceVersion", "")),
        )


@dataclass(frozen=True)
class IngressBackend:
    service_name: str
    port: int

    def to_dict(self) -> dict[str, Any]:
        return {"service": {"name": self.service_name, "port": {"number": self.port}}}


@dataclass(frozen=True)
class IngressPath:
    path: str
    path_type: str
    backend: IngressBackend

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "pathType": self.path_type, "backend": self.backend.to_dict()}


@dataclass(frozen=True)
class IngressRule:
    host: str
    paths: tuple[IngressPath, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"host": self.host, "http": {"paths": [p.to_dict() for p in self.paths]}}


@dataclass(frozen=True)
class IngressObject:
    """The managed derived object."""

    namespace: str
    name: str
    ingress_class_name: str | None = None
    rules: tuple[IngressRule, ...] = ()
    owner_references: tuple[OwnerReference, ...] = ()
    uid: str = ""
    resource_version: str = ""

    def controller_ref(self) -> OwnerReference | None:
        """Return the owner reference marked as controller, if any."""
        for ref in self.owner_references:
            if ref.controller:
                return ref
        return None

    def is_controlled_by(self, kind: str) -> bool:
        ref = self.controller_ref()
        return ref is not None and ref.kind == kind

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> IngressObject:
        metadata = _metadata(raw)
        spec = raw.get("spec") or {}
        return cls(
            namespace=str(metadata.get("namespace", "")),
            name=str(metadata.get("name", "")),
            ingress_class_name=spec.get("ingressClassName"),
            rules=tuple(_decode_rule(r) for r in spec.get("rules") or []),
            owner_references=tuple(
                OwnerReference.from_dict(ref) for ref in metadata.get("ownerReferences") or []
            ),
            uid=str(metadata.get("uid", "")),
            resource_version=str(metadata.get("resourceVersion", "")),
        )

    def to_manifest(self) -> dict[str, Any]:
        """Render the object as a request body for the networking/v1 API."""
        metadata: dict[str, Any] = {"name": self.name, "namespace": self.namespace}
        if self.owner_references:
            metadata["ownerReferences"] = [ref.to_dict() for ref in self.owner_references]
        spec: dict[str, Any] = {"rules": [rule.to_dict() for rule in self.rules]}
        if self.ingress_class_name is not None:
            spec["ingressClassName"] = self.ingress_class_name
        return {
            "apiVersion": INGRESS_API_VERSION,
            "kind": INGRESS_KIND,
            "metadata": metadata,
            "spec": spec,
        }


def _decode_rule(raw: dict[str, Any]) -> IngressRule:
    http = raw.get("http") or {}
    paths = []
    for item in http.get("paths") or []:
        service = (item.get("backend") or {}).get("service") or {}
        port = service.get("port") or {}
        paths.append(
            IngressPath(
                path=str(item.get("path", "")),
                path_type=str(item.get("pathType", "")),
                backend=IngressBackend(
                    service_name=str(service.get("name", "")),
                    port=int(port.get("number") or 0),
                ),
            )
        )
    return IngressRule(host=str(raw.get("host", "")), paths=tuple(paths))
