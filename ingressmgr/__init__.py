"""ingressmgr: keeps one Ingress per annotated Service."""

__version__ = "0.1.0"
