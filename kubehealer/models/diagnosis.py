"""Diagnosis output data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class IssueSeverity(StrEnum):
    """Severity of a finding."""

    WARNING = "Warning"
    ERROR = "Error"


@dataclass(frozen=True)
class CheckResult:
    """Atomic output of one rule evaluated against one container.

    When ``matched`` is False every other field is empty.
    """

    matched: bool
    title: str = ""
    suggestion: str = ""
    raw_error: str = ""


NO_MATCH = CheckResult(matched=False)


@dataclass(frozen=True)
class Issue:
    """A finding derived from a rule match or from log classification."""

    severity: IssueSeverity
    title: str
    raw_error: str = ""
    suggestion: str = ""


@dataclass(frozen=True)
class LogEvidence:
    """Log tail plus the failure signatures found in it."""

    lines: tuple[str, ...] = ()
    signatures: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContainerDiagnosis:
    """Diagnosis of a single container."""

    name: str
    state: str = ""
    reason: str = ""
    message: str = ""
    exit_code: int = 0
    ready: bool = False
    resource_info: str = ""
    issues: tuple[Issue, ...] = ()
    log_tail: tuple[str, ...] = ()
    matched_log_signatures: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiagnosisResult:
    """Root aggregate of one analysis run. Immutable once produced."""

    name: str
    namespace: str
    uid: str = ""
    node_name: str = ""
    phase: str = ""
    restart_count: int = 0
    containers: tuple[ContainerDiagnosis, ...] = ()
    recent_events: tuple[str, ...] = ()

    @property
    def has_issues(self) -> bool:
        return any(c.issues for c in self.containers)
