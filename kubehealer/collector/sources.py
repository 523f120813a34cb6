"""Interfaces of the external collaborators the diagnosis core depends on.

The core never talks to the Kubernetes API directly; it is handed objects
satisfying these protocols. ``kubehealer.collector.kube.KubeClient`` is the
production implementation; tests substitute fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from kubehealer.models.diagnosis import DiagnosisResult
from kubehealer.models.events import RecordedEvent
from kubehealer.models.resources import ResourceSnapshot


class ResourceNotFoundError(LookupError):
    """Raised by a SnapshotQuery when the requested Pod does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f"pod {namespace}/{name} not found")
        self.namespace = namespace
        self.name = name


@runtime_checkable
class SnapshotQuery(Protocol):
    async def get_pod(self, namespace: str, name: str) -> ResourceSnapshot: ...


@runtime_checkable
class EventQuery(Protocol):
    async def list_events(self, resource: ResourceSnapshot) -> list[RecordedEvent]: ...


@runtime_checkable
class LogFetcher(Protocol):
    """Returns the log tail as lines; raises on any failure."""

    async def read_log(
        self,
        resource: ResourceSnapshot,
        container: str,
        *,
        previous: bool,
        tail_lines: int,
    ) -> list[str]: ...


@runtime_checkable
class ReportSink(Protocol):
    """Persists a finished diagnosis (file, webhook, ...)."""

    async def write(self, result: DiagnosisResult) -> object: ...
