"""Watch notifications the controller reacts to.

Each notification kind is its own frozen dataclass carrying a concretely typed
payload. The kind is decided where the watch cache is subscribed, so the event
router only ever dispatches on these types.
"""

from __future__ import annotations

from dataclasses import dataclass

from ingressmgr.models.resources import IngressObject, ServiceObject


@dataclass(frozen=True)
class ServiceAdded:
    service: ServiceObject


@dataclass(frozen=True)
class ServiceUpdated:
    old: ServiceObject
    new: ServiceObject


@dataclass(frozen=True)
class ServiceDeleted:
    service: ServiceObject


@dataclass(frozen=True)
class IngressDeleted:
    ingress: IngressObject


WatchEvent = ServiceAdded | ServiceUpdated | ServiceDeleted | IngressDeleted
