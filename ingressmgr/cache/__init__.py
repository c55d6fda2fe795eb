"""Watch cache for ingressmgr.

Submodules:
    store    -- ObjectStore: (namespace, name) -> typed object map.
    informer -- Informer: list/watch loop keeping a store current and
                notifying subscribers of add/update/delete.
"""

from ingressmgr.cache.informer import Informer, ResourceExpiredError, wait_for_cache_sync
from ingressmgr.cache.store import ObjectStore

__all__ = ["Informer", "ObjectStore", "ResourceExpiredError", "wait_for_cache_sync"]
