"""Point-in-time Pod snapshot data structures.

Container state is a tagged union: exactly one of Waiting, Running or
Terminated is carried per state slot. Consumers dispatch with ``match``
over the three classes instead of probing nullable fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class PodPhase(StrEnum):
    """Pod lifecycle phase."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Waiting:
    """Container is not yet running (pulling, backing off, creating)."""

    reason: str = ""
    message: str = ""


@dataclass(frozen=True)
class Running:
    """Container process is up."""

    started_at: datetime | None = None


@dataclass(frozen=True)
class Terminated:
    """Container process has exited."""

    reason: str = ""
    message: str = ""
    exit_code: int = 0


ContainerState = Waiting | Running | Terminated


@dataclass(frozen=True)
class ContainerSpec:
    """Declared container configuration (quantities kept as K8s strings)."""

    name: str
    image: str = ""
    requests: dict[str, str] = field(default_factory=dict)
    limits: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ContainerStatus:
    """Observed container status.

    ``last_state`` holds the previous incarnation's exit info and may be set
    while the container is currently Waiting or Running.
    """

    name: str
    image: str = ""
    ready: bool = False
    restart_count: int = 0
    state: ContainerState | None = None
    last_state: ContainerState | None = None


@dataclass(frozen=True)
class PodCondition:
    """A Pod status condition, e.g. PodScheduled=False."""

    type: str
    status: str
    reason: str = ""
    message: str = ""


@dataclass(frozen=True)
class ResourceSnapshot:
    """Snapshot of a Pod's spec and status at a point in time."""

    name: str
    namespace: str
    uid: str = ""
    phase: str = ""
    node_name: str = ""
    conditions: tuple[PodCondition, ...] = ()
    containers: tuple[ContainerSpec, ...] = ()
    container_statuses: tuple[ContainerStatus, ...] = ()

    @property
    def identity(self) -> str:
        """Stable key: the UID when known, else namespace/name."""
        return self.uid or f"{self.namespace}/{self.name}"

    @property
    def total_restarts(self) -> int:
        """Sum of restart counts across all container statuses."""
        return sum(cs.restart_count for cs in self.container_statuses)

    def container_spec(self, name: str) -> ContainerSpec | None:
        """Return the declared spec for ``name`` or None."""
        for spec in self.containers:
            if spec.name == name:
                return spec
        return None

    def condition(self, cond_type: str) -> PodCondition | None:
        """Return the first condition of ``cond_type`` or None."""
        for cond in self.conditions:
            if cond.type == cond_type:
                return cond
        return None
