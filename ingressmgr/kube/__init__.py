"""Kubernetes API adapters (kubernetes_asyncio)."""

from ingressmgr.kube.client import IngressClient, load_kube_config

__all__ = ["IngressClient", "load_kube_config"]
