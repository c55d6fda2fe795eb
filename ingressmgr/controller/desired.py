"""Build the Ingress a marked Service should have."""

from __future__ import annotations

from dataclasses import dataclass

from ingressmgr.errors import ConstructionError
from ingressmgr.models.config import IngressTemplateConfig
from ingressmgr.models.resources import (
    SERVICE_API_VERSION,
    SERVICE_KIND,
    IngressBackend,
    IngressObject,
    IngressPath,
    IngressRule,
    OwnerReference,
    ServiceObject,
)


@dataclass(frozen=True)
class IngressTemplate:
    """Fixed routing shape applied to every derived Ingress."""

    host: str = "example.com"
    path: str = "/"
    path_type: str = "Prefix"
    port: int = 80
    ingress_class_name: str = "nginx"

    @classmethod
    def from_config(cls, config: IngressTemplateConfig) -> IngressTemplate:
        return cls(
            host=config.host,
            path=config.path,
            path_type=config.path_type,
            port=config.backend_port,
            ingress_class_name=config.ingress_class,
        )


def build_ingress(service: ServiceObject, template: IngressTemplate | None = None) -> IngressObject:
    """Return the desired Ingress for *service*.

    The Ingress mirrors the Service's namespace and name, carries a controller
    owner reference back to it (so deleting the Service cascades through the
    cluster garbage collector) and routes ``host/path`` to the Service.

    Raises:
        ConstructionError: the Service lacks the name or uid needed for the
            owner reference.
    """
    template = template or IngressTemplate()
    if not service.name:
        raise ConstructionError(f"service in namespace {service.namespace!r} has no name")
    if not service.uid:
        raise ConstructionError(f"service {service.namespace}/{service.name} has no uid")

    owner = OwnerReference(
        api_version=SERVICE_API_VERSION,
        kind=SERVICE_KIND,
        name=service.name,
        uid=service.uid,
        controller=True,
        block_owner_deletion=True,
    )
    rule = IngressRule(
        host=template.host,
        paths=(
            IngressPath(
                path=template.path,
                path_type=template.path_type,
                backend=IngressBackend(service_name=service.name, port=template.port),
            ),
        ),
    )
    return IngressObject(
        namespace=service.namespace,
        name=service.name,
        ingress_class_name=template.ingress_class_name,
        rules=(rule,),
        owner_references=(owner,),
    )
