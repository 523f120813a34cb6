"""Pod notification source with list-then-watch and periodic resync.

Wraps kubernetes_asyncio's Watch to provide:
- An initial (and recovery) list that diffs against known pods and emits
  add/update/delete callbacks
- Resumable watches via resourceVersion, with 410 Gone triggering a relist
- Exponential back-off (1 s – 60 s) on stream errors
- A periodic full resync that re-delivers ``on_update(pod, pod)`` for every
  known pod; handlers are expected to ignore these no-op updates

Callbacks are synchronous and must return quickly.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from kubernetes_asyncio import watch
from kubernetes_asyncio.client.exceptions import ApiException

from kubehealer.collector.kube import pod_to_snapshot
from kubehealer.models.resources import ResourceSnapshot
from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import watcher_backoff_seconds, watcher_reconnects_total

_BACKOFF_MIN_S: float = 1.0
_BACKOFF_MAX_S: float = 60.0
_BACKOFF_MULTIPLIER: float = 2.0

DEFAULT_RESYNC_S: float = 600.0


class PodEventHandler(Protocol):
    def on_add(self, pod: ResourceSnapshot) -> None: ...

    def on_update(self, old: ResourceSnapshot, new: ResourceSnapshot) -> None: ...

    def on_delete(self, pod: ResourceSnapshot) -> None: ...


class PodWatcher:
    """Delivers Pod add/update/delete notifications to a handler.

    Usage::

        v1 = kubernetes_asyncio.client.CoreV1Api()
        watcher = PodWatcher(v1, monitor, namespace="default")
        await watcher.start()
        ...
        await watcher.stop()
    """

    def __init__(
        self,
        api: Any,
        handler: PodEventHandler,
        namespace: str = "",
        label_selector: str = "",
        resync_seconds: float = DEFAULT_RESYNC_S,
    ) -> None:
        self._api = api
        self._handler = handler
        self._namespace = namespace
        self._label_selector = label_selector
        self._resync_s = resync_seconds
        self._log = get_logger("watcher.pod", namespace=namespace or "*")

        # Last delivered snapshot per pod, keyed by identity
        self._known: dict[str, ResourceSnapshot] = {}
        self._resource_version: str = ""
        self._backoff_s: float = _BACKOFF_MIN_S
        self._running: bool = False
        self._tasks: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def known_pods(self) -> int:
        return len(self._known)

    async def start(self) -> None:
        """Start the watch and resync loops as background tasks."""
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._watch_loop(), name="pod-watcher"),
            asyncio.create_task(self._resync_loop(), name="pod-watcher-resync"),
        ]
        self._log.info("watcher_started", label_selector=self._label_selector, resync_s=self._resync_s)

    async def stop(self) -> None:
        """Cancel both loops and wait for them to exit."""
        self._running = False
        for task in self._tasks:
            if not task.done():
                task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []
        self._log.info("watcher_stopped")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, event_type: str, pod: ResourceSnapshot) -> None:
        """Translate one watch event into a handler callback."""
        key = pod.identity
        try:
            if event_type == "DELETED":
                self._known.pop(key, None)
                self._handler.on_delete(pod)
                return

            old = self._known.get(key)
            self._known[key] = pod
            if old is None:
                self._handler.on_add(pod)
            else:
                self._handler.on_update(old, pod)
        except Exception as exc:
            self._log.error(
                "pod_handler_error",
                event_type=event_type,
                pod=f"{pod.namespace}/{pod.name}",
                error=str(exc),
                exc_info=True,
            )

    def resync(self) -> None:
        """Re-deliver every known pod as an unchanged update."""
        for pod in list(self._known.values()):
            self.handle("MODIFIED", pod)

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    def _list_func(self) -> Callable[..., Coroutine[Any, Any, Any]]:
        if self._namespace:
            return self._api.list_namespaced_pod  # type: ignore[no-any-return]
        return self._api.list_pod_for_all_namespaces  # type: ignore[no-any-return]

    def _list_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if self._namespace:
            kwargs["namespace"] = self._namespace
        if self._label_selector:
            kwargs["label_selector"] = self._label_selector
        return kwargs

    async def _watch_loop(self) -> None:
        while self._running:
            try:
                if not self._resource_version:
                    await self._relist()
                await self._run_watch()
            except asyncio.CancelledError:
                return
            except ApiException as exc:
                if exc.status == 410:
                    self._log.warning("watch_gone_410")
                    watcher_reconnects_total.labels(reason="410").inc()
                    self._resource_version = ""
                    continue
                watcher_reconnects_total.labels(reason=str(exc.status)).inc()
                self._log.warning("watch_api_error", status=exc.status, reason=exc.reason)
                await self._backoff()
            except Exception as exc:
                if not self._running:
                    return
                watcher_reconnects_total.labels(reason="unexpected").inc()
                self._log.error("watch_unexpected_error", error=str(exc), exc_info=True)
                await self._backoff()

    async def _relist(self) -> None:
        """List all pods, emit callbacks relative to known state, record the RV."""
        result = await self._list_func()(**self._list_kwargs())
        seen: set[str] = set()
        for item in getattr(result, "items", None) or []:
            pod = pod_to_snapshot(item)
            seen.add(pod.identity)
            self.handle("ADDED", pod)

        for key in [k for k in self._known if k not in seen]:
            self.handle("DELETED", self._known[key])

        metadata = getattr(result, "metadata", None)
        self._resource_version = str(getattr(metadata, "resource_version", "") or "")
        self._log.info("relist_complete", pods=len(seen), resource_version=self._resource_version)

    async def _run_watch(self) -> None:
        kwargs = self._list_kwargs()
        kwargs["allow_watch_bookmarks"] = True
        if self._resource_version:
            kwargs["resource_version"] = self._resource_version

        w = watch.Watch()
        try:
            async for raw_event in w.stream(self._list_func(), **kwargs):
                if not self._running:
                    return
                event_type: str = raw_event.get("type", "")
                obj = raw_event.get("object")

                if event_type == "BOOKMARK":
                    rv = _bookmark_rv(raw_event)
                    if rv:
                        self._resource_version = rv
                    continue
                if obj is None or getattr(obj, "metadata", None) is None:
                    continue

                rv = getattr(obj.metadata, "resource_version", None)
                if rv:
                    self._resource_version = str(rv)
                self._backoff_s = _BACKOFF_MIN_S
                self.handle(event_type, pod_to_snapshot(obj))
        finally:
            await w.close()

    async def _resync_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._resync_s)
            except asyncio.CancelledError:
                return
            self._log.debug("resync", pods=len(self._known))
            self.resync()

    async def _backoff(self) -> None:
        delay = min(self._backoff_s, _BACKOFF_MAX_S)
        watcher_backoff_seconds.observe(delay)
        self._log.debug("watcher_backoff", delay_s=delay)
        await asyncio.sleep(delay)
        self._backoff_s = min(self._backoff_s * _BACKOFF_MULTIPLIER, _BACKOFF_MAX_S)


def _bookmark_rv(raw_event: dict[str, Any]) -> str:
    raw_obj = raw_event.get("raw_object", {})
    if not isinstance(raw_obj, dict):
        return ""
    metadata = raw_obj.get("metadata", {})
    if not isinstance(metadata, dict):
        return ""
    return str(metadata.get("resourceVersion", ""))
