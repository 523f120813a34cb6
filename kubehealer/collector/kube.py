"""kubernetes_asyncio-backed implementations of the collaborator protocols.

``KubeClient`` satisfies SnapshotQuery, EventQuery and LogFetcher on top of
a ``CoreV1Api``. The module-level converters turn deserialized API objects
(``V1Pod``, ``V1Event``) into KubeHealer's own immutable models.
"""

from __future__ import annotations

from typing import Any

from kubernetes_asyncio.client.exceptions import ApiException

from kubehealer.collector.sources import ResourceNotFoundError
from kubehealer.models.events import RecordedEvent
from kubehealer.models.resources import (
    ContainerSpec,
    ContainerState,
    ContainerStatus,
    PodCondition,
    ResourceSnapshot,
    Running,
    Terminated,
    Waiting,
)
from kubehealer.observability.logging import get_logger

_logger = get_logger("collector.kube")


class KubeClient:
    """Read-only Pod, Event and log queries against the API server.

    Usage::

        v1 = kubernetes_asyncio.client.CoreV1Api()
        kube = KubeClient(v1)
        snapshot = await kube.get_pod("default", "my-pod")
    """

    def __init__(self, api: Any) -> None:
        """Args:
        api: A ``kubernetes_asyncio.client.CoreV1Api`` instance.
        """
        self._api = api

    async def get_pod(self, namespace: str, name: str) -> ResourceSnapshot:
        try:
            pod = await self._api.read_namespaced_pod(name=name, namespace=namespace)
        except ApiException as exc:
            if exc.status == 404:
                raise ResourceNotFoundError(namespace, name) from exc
            raise
        return pod_to_snapshot(pod)

    async def list_events(self, resource: ResourceSnapshot) -> list[RecordedEvent]:
        """List events whose involvedObject is this Pod (matched by UID when known)."""
        selector = f"involvedObject.name={resource.name},involvedObject.namespace={resource.namespace}"
        if resource.uid:
            selector += f",involvedObject.uid={resource.uid}"
        result = await self._api.list_namespaced_event(namespace=resource.namespace, field_selector=selector)
        items = getattr(result, "items", None) or []
        return [event_to_record(item) for item in items]

    async def read_log(
        self,
        resource: ResourceSnapshot,
        container: str,
        *,
        previous: bool,
        tail_lines: int,
    ) -> list[str]:
        text = await self._api.read_namespaced_pod_log(
            name=resource.name,
            namespace=resource.namespace,
            container=container,
            previous=previous,
            tail_lines=tail_lines,
        )
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        return str(text or "").splitlines()


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------


def _convert_state(state: Any) -> ContainerState | None:
    """Convert a V1ContainerState into the tagged-union state."""
    if state is None:
        return None
    waiting = getattr(state, "waiting", None)
    if waiting is not None:
        return Waiting(reason=waiting.reason or "", message=waiting.message or "")
    terminated = getattr(state, "terminated", None)
    if terminated is not None:
        return Terminated(
            reason=terminated.reason or "",
            message=terminated.message or "",
            exit_code=int(terminated.exit_code or 0),
        )
    running = getattr(state, "running", None)
    if running is not None:
        return Running(started_at=getattr(running, "started_at", None))
    return None


def _quantities(resources: Any, attr: str) -> dict[str, str]:
    values = getattr(resources, attr, None) if resources is not None else None
    if not values:
        return {}
    return {str(k): str(v) for k, v in values.items()}


def _convert_spec(container: Any) -> ContainerSpec:
    resources = getattr(container, "resources", None)
    return ContainerSpec(
        name=container.name,
        image=container.image or "",
        requests=_quantities(resources, "requests"),
        limits=_quantities(resources, "limits"),
    )


def _convert_status(cs: Any) -> ContainerStatus:
    return ContainerStatus(
        name=cs.name,
        image=cs.image or "",
        ready=bool(cs.ready),
        restart_count=int(cs.restart_count or 0),
        state=_convert_state(cs.state),
        last_state=_convert_state(cs.last_state),
    )


def pod_to_snapshot(pod: Any) -> ResourceSnapshot:
    """Convert a deserialized V1Pod into a ResourceSnapshot."""
    metadata = pod.metadata
    spec = pod.spec
    status = pod.status

    conditions = tuple(
        PodCondition(
            type=c.type,
            status=c.status,
            reason=c.reason or "",
            message=c.message or "",
        )
        for c in (getattr(status, "conditions", None) or [])
    )
    containers = tuple(_convert_spec(c) for c in (getattr(spec, "containers", None) or []))
    statuses = tuple(_convert_status(cs) for cs in (getattr(status, "container_statuses", None) or []))

    return ResourceSnapshot(
        name=metadata.name,
        namespace=metadata.namespace or "",
        uid=metadata.uid or "",
        phase=getattr(status, "phase", None) or "",
        node_name=getattr(spec, "node_name", None) or "",
        conditions=conditions,
        containers=containers,
        container_statuses=statuses,
    )


def event_to_record(event: Any) -> RecordedEvent:
    """Convert a deserialized V1Event (CoreV1) into a RecordedEvent."""
    return RecordedEvent(
        reason=event.reason or "",
        message=event.message or "",
        type=event.type or "Normal",
        last_timestamp=event.last_timestamp,
        event_time=event.event_time,
        first_timestamp=event.first_timestamp,
    )
