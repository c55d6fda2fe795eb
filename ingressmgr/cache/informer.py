"""List/watch informer backed by kubernetes_asyncio.

One Informer per resource kind and namespace:

1. List all objects, replace the store, mark the informer synced.
2. Watch from the list's resourceVersion; apply ADDED / MODIFIED / DELETED to
   the store and notify subscribers with decoded, typed objects.
3. On a dropped stream, reconnect with exponential back-off (1s -> 30s).
   An expired resourceVersion (HTTP 410) forces a relist, and the relist
   notifies subscribers of everything that changed while disconnected.
4. With ``resync_period > 0``, periodically re-deliver every cached object as
   an update so level-triggered consumers re-check the whole set.

Handler exceptions are logged and never stop the watch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic

from ingressmgr.cache.store import ObjectStore, T
from ingressmgr.observability.logging import get_logger
from ingressmgr.observability.metrics import informer_events_total

_INITIAL_BACKOFF = 1.0
_MAX_BACKOFF = 30.0
_WATCH_TIMEOUT_SECONDS = 300
_HTTP_GONE = 410


class ResourceExpiredError(Exception):
    """The watch resourceVersion is too old; a relist is required."""


@dataclass
class _Subscription(Generic[T]):
    on_add: Callable[[T], None] | None = None
    on_update: Callable[[T, T], None] | None = None
    on_delete: Callable[[T], None] | None = None


def _default_watch_factory() -> Any:
    from kubernetes_asyncio import watch  # type: ignore[import-untyped]

    return watch.Watch()


class Informer(Generic[T]):
    """Keeps an ObjectStore in step with one resource kind in one namespace.

    Args:
        kind:          Resource kind, used for logs and metrics.
        list_fn:       Namespaced list method of a kubernetes_asyncio API
                       (e.g. ``CoreV1Api().list_namespaced_service``).
        decode:        Converts a raw API dict into the typed object.
        namespace:     Namespace to list and watch.
        resync_period: Seconds between full re-deliveries; 0 disables.
        watch_factory: Builds a ``kubernetes_asyncio.watch.Watch``.
    """

    def __init__(
        self,
        kind: str,
        list_fn: Callable[..., Any],
        decode: Callable[[dict[str, Any]], T],
        namespace: str,
        resync_period: float = 0.0,
        watch_factory: Callable[[], Any] = _default_watch_factory,
    ) -> None:
        self.kind = kind
        self.namespace = namespace
        self.store: ObjectStore[T] = ObjectStore()
        self._list_fn = list_fn
        self._decode = decode
        self._resync_period = resync_period
        self._watch_factory = watch_factory
        self._subscriptions: list[_Subscription[T]] = []
        self._resource_version: str | None = None
        self._synced = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._watch: Any = None
        self._stopping = False
        self._log = get_logger(f"cache.informer.{kind.lower()}")

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(
        self,
        on_add: Callable[[T], None] | None = None,
        on_update: Callable[[T, T], None] | None = None,
        on_delete: Callable[[T], None] | None = None,
    ) -> None:
        self._subscriptions.append(_Subscription(on_add, on_update, on_delete))

    @property
    def has_synced(self) -> bool:
        return self._synced.is_set()

    async def wait_synced(self) -> None:
        await self._synced.wait()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._tasks:
            return
        self._stopping = False
        self._tasks.append(asyncio.create_task(self._run(), name=f"informer-{self.kind}"))
        if self._resync_period > 0:
            self._tasks.append(asyncio.create_task(self._resync_loop(), name=f"resync-{self.kind}"))
        self._log.info("informer_started", namespace=self.namespace)

    async def stop(self) -> None:
        self._stopping = True
        if self._watch is not None:
            self._watch.stop()
        for task in self._tasks:
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._log.info("informer_stopped", namespace=self.namespace)

    async def _run(self) -> None:
        backoff = _INITIAL_BACKOFF
        while not self._stopping:
            try:
                if self._resource_version is None:
                    await self.relist()
                await self._watch_once()
                backoff = _INITIAL_BACKOFF
            except ResourceExpiredError:
                self._log.info("watch_resource_expired", resource_version=self._resource_version)
                self._resource_version = None
            except Exception as exc:
                if _status_of(exc) == _HTTP_GONE:
                    self._resource_version = None
                    continue
                self._log.warning(
                    "watch_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    retry_in=backoff,
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _MAX_BACKOFF)

    async def _resync_loop(self) -> None:
        while not self._stopping:
            await asyncio.sleep(self._resync_period)
            if self.has_synced:
                self.resync()

    # ------------------------------------------------------------------
    # List and watch
    # ------------------------------------------------------------------

    async def relist(self) -> None:
        """List every object, replace the store and notify the difference."""
        response = await self._list_fn(namespace=self.namespace, _preload_content=False)
        try:
            body = await response.json()
        finally:
            response.release()
        items = body.get("items") or []
        resource_version = str((body.get("metadata") or {}).get("resourceVersion", ""))
        self.apply_list(items, resource_version)

    def apply_list(self, items: list[dict[str, Any]], resource_version: str) -> None:
        new_objects = [self._decode(raw) for raw in items]
        old = self.store.replace(new_objects)
        for obj in new_objects:
            previous = old.pop((obj.namespace, obj.name), None)
            if previous is None:
                self._notify("ADDED", obj)
            else:
                self._notify("MODIFIED", obj, previous)
        for gone in old.values():
            self._notify("DELETED", gone)

        self._resource_version = resource_version
        if not self._synced.is_set():
            self._synced.set()
            self._log.info("informer_synced", objects=len(self.store))

    async def _watch_once(self) -> None:
        watch = self._watch_factory()
        self._watch = watch
        try:
            async with watch.stream(
                self._list_fn,
                namespace=self.namespace,
                resource_version=self._resource_version,
                timeout_seconds=_WATCH_TIMEOUT_SECONDS,
                allow_watch_bookmarks=True,
            ) as stream:
                async for event in stream:
                    self.handle_watch_event(str(event.get("type", "")), event.get("raw_object") or {})
        finally:
            self._watch = None

    def handle_watch_event(self, event_type: str, raw: dict[str, Any]) -> None:
        if event_type == "ERROR":
            if raw.get("code") == _HTTP_GONE:
                raise ResourceExpiredError(str(raw.get("message", "")))
            self._log.warning("watch_error_event", message=raw.get("message", ""), code=raw.get("code"))
            return

        resource_version = (raw.get("metadata") or {}).get("resourceVersion")
        if resource_version:
            self._resource_version = str(resource_version)
        if event_type == "BOOKMARK":
            return

        obj = self._decode(raw)
        if event_type in ("ADDED", "MODIFIED"):
            old = self.store.upsert(obj)
            if old is None:
                self._notify("ADDED", obj)
            else:
                self._notify("MODIFIED", obj, old)
        elif event_type == "DELETED":
            self.store.remove(obj.namespace, obj.name)
            self._notify("DELETED", obj)
        else:
            self._log.debug("watch_event_ignored", type=event_type)

    def resync(self) -> None:
        """Re-deliver every cached object as an update."""
        for obj in self.store.list():
            self._notify("MODIFIED", obj, obj)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _notify(self, event_type: str, obj: T, old: T | None = None) -> None:
        informer_events_total.labels(kind=self.kind, type=event_type.lower()).inc()
        for sub in self._subscriptions:
            try:
                if event_type == "ADDED" and sub.on_add is not None:
                    sub.on_add(obj)
                elif event_type == "MODIFIED" and sub.on_update is not None:
                    sub.on_update(old if old is not None else obj, obj)
                elif event_type == "DELETED" and sub.on_delete is not None:
                    sub.on_delete(obj)
            except Exception:
                self._log.exception(
                    "event_handler_failed",
                    type=event_type,
                    namespace=obj.namespace,
                    name=obj.name,
                )


def _status_of(exc: Exception) -> int | None:
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


async def wait_for_cache_sync(*informers: Informer[Any], timeout: float) -> None:
    """Wait until every informer has completed its initial list.

    Raises:
        TimeoutError: not all informers synced within *timeout* seconds.
    """
    async with asyncio.timeout(timeout):
        await asyncio.gather(*(informer.wait_synced() for informer in informers))
