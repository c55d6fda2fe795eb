"""Core data structures for ingressmgr."""

from ingressmgr.models.config import IngressManagerConfig
from ingressmgr.models.events import (
    IngressDeleted,
    ServiceAdded,
    ServiceDeleted,
    ServiceUpdated,
    WatchEvent,
)
from ingressmgr.models.resources import (
    INGRESS_KIND,
    SERVICE_KIND,
    IngressBackend,
    IngressObject,
    IngressPath,
    IngressRule,
    OwnerReference,
    ServiceObject,
)

__all__ = [
    "INGRESS_KIND",
    "IngressBackend",
    "IngressDeleted",
    "IngressManagerConfig",
    "IngressObject",
    "IngressPath",
    "IngressRule",
    "OwnerReference",
    "SERVICE_KIND",
    "ServiceAdded",
    "ServiceDeleted",
    "ServiceObject",
    "ServiceUpdated",
    "WatchEvent",
]
