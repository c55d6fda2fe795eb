"""Work-queue keys: ``"<namespace>/<name>"``."""

from __future__ import annotations

from ingressmgr.errors import InvalidKeyError


def object_key(namespace: str, name: str) -> str:
    """Build the key for an object. Cluster-scoped objects key on name alone."""
    if namespace:
        return f"{namespace}/{name}"
    return name


def split_key(key: str) -> tuple[str, str]:
    """Split a key into ``(namespace, name)``.

    Raises:
        InvalidKeyError: more than one ``/`` or an empty name.
    """
    parts = key.split("/")
    if len(parts) == 1:
        namespace, name = "", parts[0]
    elif len(parts) == 2:
        namespace, name = parts
    else:
        raise InvalidKeyError(key)
    if not name:
        raise InvalidKeyError(key)
    return namespace, name
