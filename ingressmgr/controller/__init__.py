"""Controller package: work queue, event routing, workers and reconciliation.

Submodules:
    keys        -- "<namespace>/<name>" key helpers.
    ratelimit   -- Requeue delay schedules.
    queue       -- RateLimitingQueue: dedup + in-flight tracking + delayed adds.
    router      -- EventRouter: watch notifications -> keys.
    desired     -- build_ingress(): the Ingress a marked Service should have.
    reconciler  -- Reconciler: level-triggered create/delete.
    retry       -- RetryPolicy: requeue-or-drop after a reconciliation.
    workers     -- WorkerPool: supervised asyncio workers.
    controller  -- IngressController: wiring of all of the above.
"""

from ingressmgr.controller.controller import IngressController
from ingressmgr.controller.desired import IngressTemplate, build_ingress
from ingressmgr.controller.keys import object_key, split_key
from ingressmgr.controller.queue import RateLimitingQueue
from ingressmgr.controller.ratelimit import (
    BucketRateLimiter,
    ItemExponentialFailureRateLimiter,
    MaxOfRateLimiter,
    default_controller_rate_limiter,
)
from ingressmgr.controller.reconciler import Reconciler, SyncAction
from ingressmgr.controller.retry import RetryPolicy
from ingressmgr.controller.router import EventRouter
from ingressmgr.controller.workers import WorkerPool

__all__ = [
    "BucketRateLimiter",
    "EventRouter",
    "IngressController",
    "IngressTemplate",
    "ItemExponentialFailureRateLimiter",
    "MaxOfRateLimiter",
    "RateLimitingQueue",
    "Reconciler",
    "RetryPolicy",
    "SyncAction",
    "WorkerPool",
    "build_ingress",
    "default_controller_rate_limiter",
    "object_key",
    "split_key",
]
