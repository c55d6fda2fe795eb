"""Prometheus metrics for the controller.

All collectors register on the prometheus_client global REGISTRY at import
time; the REST API exposes them at ``/metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

workqueue_adds_total = Counter(
    "ingressmgr_workqueue_adds_total",
    "Keys accepted by the work queue (after deduplication)",
    ["queue"],
)

workqueue_depth = Gauge(
    "ingressmgr_workqueue_depth",
    "Keys currently waiting to be processed",
    ["queue"],
)

workqueue_retries_total = Counter(
    "ingressmgr_workqueue_retries_total",
    "Rate-limited requeues scheduled",
    ["queue"],
)

reconcile_total = Counter(
    "ingressmgr_reconcile_total",
    "Reconciliations by resulting action and outcome",
    ["action", "outcome"],
)

reconcile_duration_seconds = Histogram(
    "ingressmgr_reconcile_duration_seconds",
    "Time spent reconciling a single key",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)

keys_dropped_total = Counter(
    "ingressmgr_keys_dropped_total",
    "Keys dropped after a permanent error or after exhausting retries",
    ["reason"],
)

informer_events_total = Counter(
    "ingressmgr_informer_events_total",
    "Watch notifications delivered by the informers",
    ["kind", "type"],
)

worker_restarts_total = Counter(
    "ingressmgr_worker_restarts_total",
    "Workers restarted after crashing",
)
