"""Application bootstrap for ingressmgr.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → informers → cache sync
              → controller workers → REST

Shutdown is graceful: components are stopped in reverse startup order.
Each component's stop error is caught and logged independently so that a
single failure does not prevent the rest from shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from ingressmgr.config import load_config
from ingressmgr.models.config import IngressManagerConfig
from ingressmgr.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from ingressmgr.cache import Informer
    from ingressmgr.controller import IngressController

_SHUTDOWN_GRACE_SECONDS = 15


class ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class IngressManagerApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self, config: IngressManagerConfig | None = None) -> None:
        self.config = config

        self._api_client: Any = None
        self._service_informer: Informer[Any] | None = None
        self._ingress_informer: Informer[Any] | None = None
        self._controller: IngressController | None = None
        self._rest_server: Any = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises ComponentError if a mandatory component cannot start.
        The caller (main()) turns this into a non-zero exit.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info(
            "ingressmgr starting",
            version=_version(),
            namespace=self.config.controller.namespace,
        )

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Informers + controller -----------------------------------
        await self._start_informers()

        # --- 5. Initial cache sync ---------------------------------------
        await self._wait_for_sync()

        # --- 6. Workers --------------------------------------------------
        await self._start_workers()

        # --- 7. REST API -------------------------------------------------
        await self._start_rest()

        self._running = True
        self._log.info("ingressmgr started")

    async def _start_k8s_client(self) -> None:
        """Initialise kubernetes_asyncio from in-cluster config or kubeconfig."""
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            from ingressmgr.kube import load_kube_config

            source = await load_kube_config()
            self._api_client = k8s_client.ApiClient()
            self._log.info("k8s client configured", source=source)
        except Exception as exc:
            raise ComponentError("k8s_client", exc) from exc

    async def _start_informers(self) -> None:
        """Build the Service/Ingress informers and the controller, then start watching."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting informers")
        try:
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            from ingressmgr.cache import Informer
            from ingressmgr.controller import IngressController, IngressTemplate
            from ingressmgr.controller.ratelimit import default_controller_rate_limiter
            from ingressmgr.kube import IngressClient
            from ingressmgr.models.resources import (
                INGRESS_KIND,
                SERVICE_KIND,
                IngressObject,
                ServiceObject,
            )

            core_v1 = k8s_client.CoreV1Api(self._api_client)
            networking_v1 = k8s_client.NetworkingV1Api(self._api_client)
            controller_cfg = self.config.controller
            rate_cfg = self.config.rate_limit

            services: Informer[ServiceObject] = Informer(
                SERVICE_KIND,
                core_v1.list_namespaced_service,
                ServiceObject.from_dict,
                namespace=controller_cfg.namespace,
                resync_period=controller_cfg.resync_period,
            )
            ingresses: Informer[IngressObject] = Informer(
                INGRESS_KIND,
                networking_v1.list_namespaced_ingress,
                IngressObject.from_dict,
                namespace=controller_cfg.namespace,
                resync_period=controller_cfg.resync_period,
            )

            # Subscriptions must exist before the first list is delivered.
            self._controller = IngressController(
                services,
                ingresses,
                IngressClient(networking_v1),
                config=controller_cfg,
                template=IngressTemplate.from_config(self.config.ingress),
                rate_limiter=default_controller_rate_limiter(
                    base_delay=rate_cfg.base_delay,
                    max_delay=rate_cfg.max_delay,
                    qps=rate_cfg.qps,
                    burst=rate_cfg.burst,
                ),
            )

            await services.start()
            await ingresses.start()
            self._service_informer = services
            self._ingress_informer = ingresses
            self._log.info("informers started")
        except Exception as exc:
            raise ComponentError("informers", exc) from exc

    async def _wait_for_sync(self) -> None:
        assert self._log is not None
        assert self._controller is not None
        try:
            await self._controller.wait_for_cache_sync()
            self._log.info(
                "caches synced",
                services=len(self._controller.services.store),
                ingresses=len(self._controller.ingresses.store),
            )
        except TimeoutError as exc:
            raise ComponentError("cache_sync", exc) from exc

    async def _start_workers(self) -> None:
        assert self._log is not None
        assert self._controller is not None
        try:
            self._controller.start()
        except Exception as exc:
            raise ComponentError("workers", exc) from exc

    async def _start_rest(self) -> None:
        """Start the uvicorn health/status server."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.api.enabled:
            self._log.info("rest api disabled (api.enabled=false)")
            return

        self._log.debug("starting rest api")
        try:
            import uvicorn  # type: ignore[import-untyped]

            from ingressmgr.api import create_app

            fastapi_app = create_app(controller=self._controller, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("ingressmgr shutting down")
        self._running = False

        if self._rest_server is not None:
            self._rest_server.should_exit = True
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()
        self._rest_server = None

        await self._stop_component("controller", self._controller)
        await self._stop_component("ingress_informer", self._ingress_informer)
        await self._stop_component("service_informer", self._service_informer)
        self._controller = None
        self._ingress_informer = None
        self._service_informer = None
        await self._stop_k8s_client()

        log.info("ingressmgr stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if present, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes_asyncio ApiClient connection pool."""
        if self._api_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._api_client.close()
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._api_client = None


def _version() -> str:
    from ingressmgr import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = IngressManagerApp()
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)

    try:
        await app.start()
        await stop_requested.wait()
    except ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()


def run() -> None:
    """Console-script entry point (``ingressmgr``)."""
    asyncio.run(main())
