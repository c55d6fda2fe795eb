"""End-to-end controller behaviour against in-memory caches.

Scenarios mirror what an operator sees in a namespace: annotating a Service
exposes it, removing the annotation or the Service withdraws the Ingress, and
transient API failures are retried until the state converges.
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

from tests.helpers import MARKER, FakeIngressClient, raw_ingress, raw_service, wait_for

# ---------------------------------------------------------------------------
# Convergence
# ---------------------------------------------------------------------------


class TestConvergence:
    async def test_marked_service_gets_ingress(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")

        await controller.wait_for_cache_sync(timeout=1.0)
        controller.start()

        await wait_for(lambda: ingresses.store.get("default", "web") is not None)
        (created,) = client.created
        assert created.is_controlled_by("Service")
        assert created.rules[0].paths[0].backend.service_name == "web"

    async def test_unmarked_service_gets_nothing(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web")], "1")
        ingresses.apply_list([], "1")
        controller.start()

        await wait_for(lambda: len(controller.queue) == 0 and controller.queue.in_flight == 0)
        await asyncio.sleep(0.02)
        assert client.calls == 0

    async def test_annotation_added_later(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web")], "1")
        ingresses.apply_list([], "1")
        controller.start()

        services.handle_watch_event("MODIFIED", raw_service("web", annotations={MARKER: ""}, resource_version="2"))
        await wait_for(lambda: len(client.created) == 1)

    async def test_annotation_removed_withdraws_ingress(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")
        controller.start()
        await wait_for(lambda: ingresses.store.get("default", "web") is not None)

        services.handle_watch_event("MODIFIED", raw_service("web", resource_version="2"))

        await wait_for(lambda: ingresses.store.get("default", "web") is None)
        assert client.deleted == [("default", "web")]

    async def test_service_deleted_withdraws_ingress(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")
        controller.start()
        await wait_for(lambda: ingresses.store.get("default", "web") is not None)

        services.handle_watch_event("DELETED", raw_service("web", annotations={MARKER: ""}, resource_version="2"))

        await wait_for(lambda: client.deleted == [("default", "web")])

    async def test_externally_deleted_ingress_is_recreated(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")
        controller.start()
        await wait_for(lambda: ingresses.store.get("default", "web") is not None)

        existing = ingresses.store.get("default", "web")
        assert existing is not None
        ingresses.handle_watch_event("DELETED", existing.to_manifest())

        await wait_for(lambda: len(client.created) == 2)
        assert ingresses.store.get("default", "web") is not None

    async def test_stale_ingress_cleaned_up_on_startup(self, services, ingresses, make_controller) -> None:
        """An owned Ingress left behind for an unmarked Service is removed after restart."""
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list([raw_service("web")], "1")
        ingresses.apply_list([raw_ingress("web")], "1")
        controller.start()

        await wait_for(lambda: client.deleted == [("default", "web")])

    async def test_unowned_ingress_never_touched(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        ingresses._log = MagicMock()
        services.apply_list([raw_service("web")], "1")
        ingresses.apply_list([raw_ingress("web", owner_kind=None)], "1")
        controller.start()

        await wait_for(lambda: len(controller.queue) == 0 and controller.queue.in_flight == 0)
        await asyncio.sleep(0.02)
        assert client.calls == 0

        ingresses.handle_watch_event("DELETED", raw_ingress("web", owner_kind=None))
        await asyncio.sleep(0.02)
        assert client.calls == 0
        ingresses._log.exception.assert_not_called()

    async def test_many_services(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        services.apply_list(
            [raw_service(f"svc-{i}", annotations={MARKER: ""} if i % 2 == 0 else None) for i in range(20)],
            "1",
        )
        ingresses.apply_list([], "1")
        controller.start()

        await wait_for(lambda: len(ingresses.store) == 10)
        assert sorted(i.name for i in ingresses.store.list()) == sorted(f"svc-{i}" for i in range(0, 20, 2))
        assert all(i.is_controlled_by("Service") for i in ingresses.store.list())


# ---------------------------------------------------------------------------
# Failures and retries
# ---------------------------------------------------------------------------


class TestRetries:
    async def test_transient_create_failure_retried(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses, create_failures=3)
        controller = make_controller(client)
        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")
        controller.start()

        await wait_for(lambda: len(client.created) == 1)
        assert client.create_attempts == 4
        assert controller.queue.num_requeues("default/web") == 0

    async def test_transient_delete_failure_retried(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses, delete_failures=2)
        controller = make_controller(client)
        services.apply_list([], "1")
        ingresses.apply_list([raw_ingress("web")], "1")
        controller.start()

        services.handle_watch_event("DELETED", raw_service("web"))

        await wait_for(lambda: client.deleted == [("default", "web")])
        assert client.delete_attempts == 3

    async def test_gives_up_after_max_retries(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses, create_failures=100)
        controller = make_controller(client, max_retries=2)
        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")
        controller.start()

        await wait_for(lambda: client.create_attempts == 3)
        await asyncio.sleep(0.05)
        assert client.create_attempts == 3
        assert controller.queue.waiting == 0

    async def test_already_deleted_ingress_is_not_an_error(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses, delete_not_found=True)
        controller = make_controller(client)
        services.apply_list([], "1")
        ingresses.apply_list([raw_ingress("web")], "1")
        controller.start()

        services.handle_watch_event("DELETED", raw_service("web"))

        await wait_for(lambda: client.delete_attempts == 1)
        await asyncio.sleep(0.02)
        assert client.delete_attempts == 1
        assert controller.queue.waiting == 0

    async def test_construction_error_is_dropped(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        raw = raw_service("web", annotations={MARKER: ""})
        raw["metadata"]["uid"] = ""
        services.apply_list([raw], "1")
        ingresses.apply_list([], "1")
        controller.start()

        await wait_for(lambda: len(controller.queue) == 0 and controller.queue.in_flight == 0)
        await asyncio.sleep(0.02)
        assert client.create_attempts == 0
        assert controller.queue.waiting == 0


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    async def test_run_until_stop_event(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client)
        stop = asyncio.Event()
        runner = asyncio.create_task(controller.run(stop))

        services.apply_list([raw_service("web", annotations={MARKER: ""})], "1")
        ingresses.apply_list([], "1")
        await wait_for(lambda: len(client.created) == 1)
        assert controller.caches_synced

        stop.set()
        await asyncio.wait_for(runner, timeout=1.0)
        assert controller.queue.shutting_down
        assert controller.workers.running == 0

    async def test_service_delete_ignored_when_disabled(self, services, ingresses, make_controller) -> None:
        client = FakeIngressClient(ingresses)
        controller = make_controller(client, enqueue_on_service_delete=False)
        services._log = MagicMock()
        services.apply_list([], "1")
        ingresses.apply_list([raw_ingress("web")], "1")
        controller.start()

        services.handle_watch_event("DELETED", raw_service("web"))
        await asyncio.sleep(0.02)
        assert client.calls == 0
        assert ingresses.store.get("default", "web") is not None
        services._log.exception.assert_not_called()
