"""Remote Ingress writes and Kubernetes client configuration.

Translates kubernetes_asyncio ``ApiException`` into the ingressmgr error
hierarchy so the retry policy never has to know about HTTP status codes.
"""

from __future__ import annotations

from typing import Any

from ingressmgr.errors import NotFoundError, ResourceClientError
from ingressmgr.models.resources import INGRESS_KIND, IngressObject
from ingressmgr.observability.logging import get_logger

_logger = get_logger("kube.client")

_HTTP_NOT_FOUND = 404


class IngressClient:
    """Creates and deletes Ingresses through ``NetworkingV1Api``."""

    def __init__(self, networking_api: Any) -> None:
        self._api = networking_api

    async def create(self, namespace: str, ingress: IngressObject) -> None:
        from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

        try:
            await self._api.create_namespaced_ingress(namespace=namespace, body=ingress.to_manifest())
        except ApiException as exc:
            raise _translate(exc, namespace, ingress.name, "create") from exc

    async def delete(self, namespace: str, name: str) -> None:
        from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

        try:
            await self._api.delete_namespaced_ingress(name=name, namespace=namespace)
        except ApiException as exc:
            raise _translate(exc, namespace, name, "delete") from exc


def _translate(exc: Any, namespace: str, name: str, verb: str) -> Exception:
    status = getattr(exc, "status", None)
    if status == _HTTP_NOT_FOUND:
        return NotFoundError(INGRESS_KIND, namespace, name)
    _logger.debug("api_call_failed", verb=verb, namespace=namespace, name=name, status=status)
    return ResourceClientError(
        f"{verb} {INGRESS_KIND} {namespace}/{name} failed: {getattr(exc, 'reason', exc)}",
        status=status,
    )


async def load_kube_config() -> str:
    """Configure kubernetes_asyncio from in-cluster credentials or kubeconfig.

    Returns:
        ``"in-cluster"`` or ``"kubeconfig"``, whichever source was used.
    """
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    try:
        # load_incluster_config() is synchronous in kubernetes-asyncio
        k8s_config.load_incluster_config()
        return "in-cluster"
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config()
        return "kubeconfig"
