"""Shared fixtures for ingressmgr integration tests.

Wires real informers, queue, reconciler, retry policy and workers around a
recording fake of the Ingress API, so tests exercise the full notification
-> queue -> worker -> reconcile -> remote write loop without a cluster.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import pytest

from ingressmgr.cache.informer import Informer
from ingressmgr.controller.controller import IngressController
from ingressmgr.controller.ratelimit import ItemExponentialFailureRateLimiter
from ingressmgr.models.config import ControllerConfig
from ingressmgr.models.resources import IngressObject, ServiceObject
from tests.helpers import FakeIngressClient, make_ingress_informer, make_service_informer


@pytest.fixture
def services() -> Informer[ServiceObject]:
    return make_service_informer()


@pytest.fixture
def ingresses() -> Informer[IngressObject]:
    return make_ingress_informer()


@pytest.fixture
async def make_controller(
    services: Informer[ServiceObject],
    ingresses: Informer[IngressObject],
) -> AsyncIterator[Callable[..., IngressController]]:
    """Factory for a controller with millisecond backoff; stopped on teardown."""
    built: list[IngressController] = []

    def _make(client: FakeIngressClient, **config: object) -> IngressController:
        controller = IngressController(
            services,
            ingresses,
            client,
            config=ControllerConfig(workers=2, worker_restart_delay=0.01, **config),  # type: ignore[arg-type]
            rate_limiter=ItemExponentialFailureRateLimiter(base_delay=0.001, max_delay=0.01),
        )
        built.append(controller)
        return controller

    yield _make

    for controller in built:
        await controller.stop()
