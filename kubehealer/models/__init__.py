"""Core data structures for KubeHealer."""

from kubehealer.models.config import KubeHealerConfig
from kubehealer.models.diagnosis import (
    NO_MATCH,
    CheckResult,
    ContainerDiagnosis,
    DiagnosisResult,
    Issue,
    IssueSeverity,
    LogEvidence,
)
from kubehealer.models.events import RecordedEvent
from kubehealer.models.resources import (
    ContainerSpec,
    ContainerState,
    ContainerStatus,
    PodCondition,
    PodPhase,
    ResourceSnapshot,
    Running,
    Terminated,
    Waiting,
)

__all__ = [
    "NO_MATCH",
    "CheckResult",
    "ContainerDiagnosis",
    "ContainerSpec",
    "ContainerState",
    "ContainerStatus",
    "DiagnosisResult",
    "Issue",
    "IssueSeverity",
    "KubeHealerConfig",
    "LogEvidence",
    "PodCondition",
    "PodPhase",
    "RecordedEvent",
    "ResourceSnapshot",
    "Running",
    "Terminated",
    "Waiting",
]
