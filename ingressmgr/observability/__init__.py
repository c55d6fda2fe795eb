"""Logging and Prometheus metrics for ingressmgr."""
