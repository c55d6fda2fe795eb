"""Error hierarchy shared by the controller components.

The retry policy is the only place that inspects these types:

    NotFoundError        -- object absent; treated as a converged state.
    PermanentError       -- retrying cannot help; logged once and dropped.
    ResourceClientError  -- any other API failure; retried with backoff.
"""

from __future__ import annotations


class IngressManagerError(Exception):
    """Base class for all ingressmgr errors."""


class NotFoundError(IngressManagerError):
    """The requested object does not exist in the remote store."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        super().__init__(f"{kind} {namespace}/{name} not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class ResourceClientError(IngressManagerError):
    """A remote create/delete call failed for a reason other than not-found."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PermanentError(IngressManagerError):
    """Raised for failures that no amount of retrying will fix."""


class InvalidKeyError(PermanentError):
    """A work-queue key is not of the form ``<namespace>/<name>``."""

    def __init__(self, key: str) -> None:
        super().__init__(f"unexpected key format: {key!r}")
        self.key = key


class ConstructionError(PermanentError):
    """The desired Ingress could not be built from its Service."""
