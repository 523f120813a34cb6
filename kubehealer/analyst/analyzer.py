"""Analyzer: orchestrates rules, log evidence and events for one Pod.

For every container status the Analyzer records the observed state and
resource configuration, runs the rule engine, and gathers log evidence
when the container is not running or has restarted. A Pending pod with no
container statuses is evaluated once against a placeholder status so that
pod-level rules (scheduling) can still report.

A DiagnosisResult is always produced: collaborator failures surface as
placeholder entries, never as exceptions.
"""

from __future__ import annotations

import asyncio
import time

from kubehealer.collector.events import EventCollector
from kubehealer.collector.logs import LogEvidenceCollector
from kubehealer.collector.sources import SnapshotQuery
from kubehealer.models.diagnosis import (
    ContainerDiagnosis,
    DiagnosisResult,
    Issue,
    IssueSeverity,
    LogEvidence,
)
from kubehealer.models.resources import (
    ContainerSpec,
    ContainerStatus,
    PodPhase,
    ResourceSnapshot,
    Running,
    Terminated,
    Waiting,
)
from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import diagnoses_total, diagnosis_duration_seconds
from kubehealer.rules import build_rule_engine
from kubehealer.rules.base import RuleEngine
from kubehealer.rules.r01_oom_killed import OOM_TITLE

_logger = get_logger("analyzer")

PLACEHOLDER_CONTAINER = "n/a"
NOT_SET = "not set"

_LOG_ISSUE_SUGGESTION = "Inspect the log tail below to locate the failing code path."


def _quantity(values: dict[str, str], key: str) -> str:
    value = values.get(key, "").strip()
    if not value or value == "0":
        return NOT_SET
    return value


def format_resource_info(spec: ContainerSpec) -> str:
    """Render requests/limits as ``CPU(Req=../Lim=..) | Mem(Req=../Lim=..)``."""
    return (
        f"CPU(Req={_quantity(spec.requests, 'cpu')}/Lim={_quantity(spec.limits, 'cpu')}) | "
        f"Mem(Req={_quantity(spec.requests, 'memory')}/Lim={_quantity(spec.limits, 'memory')})"
    )


def _needs_logs(status: ContainerStatus) -> bool:
    """Logs are fetched only for non-running or restarted containers."""
    return not isinstance(status.state, Running) or status.restart_count > 0


class Analyzer:
    """Produces a DiagnosisResult from a ResourceSnapshot.

    Usage::

        analyzer = Analyzer(EventCollector(kube), LogEvidenceCollector(kube))
        result = await analyzer.analyze_pod(snapshot)
    """

    def __init__(
        self,
        events: EventCollector,
        logs: LogEvidenceCollector,
        engine: RuleEngine | None = None,
        snapshots: SnapshotQuery | None = None,
    ) -> None:
        self._events = events
        self._logs = logs
        self._engine = engine if engine is not None else build_rule_engine()
        self._snapshots = snapshots

    async def diagnose(self, namespace: str, name: str) -> DiagnosisResult:
        """Fetch the current snapshot of ``namespace/name`` and analyze it.

        Raises ResourceNotFoundError when the pod does not exist.
        """
        if self._snapshots is None:
            raise RuntimeError("Analyzer was built without a snapshot query")
        resource = await self._snapshots.get_pod(namespace, name)
        return await self.analyze_pod(resource)

    async def analyze_pod(self, resource: ResourceSnapshot) -> DiagnosisResult:
        """Run a full diagnosis of ``resource``. Never raises for collaborator failures."""
        started = time.monotonic()
        log = _logger.bind(pod=f"{resource.namespace}/{resource.name}")

        events_task = asyncio.ensure_future(self._events.recent_events(resource))
        container_tasks = [
            asyncio.ensure_future(self.diagnose_container(resource, cs)) for cs in resource.container_statuses
        ]
        try:
            containers = list(await asyncio.gather(*container_tasks))
            recent_events = await events_task
        finally:
            # No sibling may outlive this call when one of them raised.
            pending = [t for t in (events_task, *container_tasks) if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if not resource.container_statuses and resource.phase == PodPhase.PENDING:
            placeholder = ContainerStatus(name=PLACEHOLDER_CONTAINER)
            synthetic = await self.diagnose_container(resource, placeholder)
            if synthetic.issues:
                containers.append(synthetic)

        result = DiagnosisResult(
            name=resource.name,
            namespace=resource.namespace,
            uid=resource.uid,
            node_name=resource.node_name,
            phase=resource.phase,
            restart_count=resource.total_restarts,
            containers=tuple(containers),
            recent_events=recent_events,
        )

        duration = time.monotonic() - started
        outcome = "issues" if result.has_issues else "healthy"
        diagnoses_total.labels(outcome=outcome).inc()
        diagnosis_duration_seconds.observe(duration)
        log.info(
            "diagnosis_complete",
            phase=result.phase,
            restarts=result.restart_count,
            containers=len(result.containers),
            issues=sum(len(c.issues) for c in result.containers),
            duration_ms=round(duration * 1000.0, 1),
        )
        return result

    async def diagnose_container(self, resource: ResourceSnapshot, status: ContainerStatus) -> ContainerDiagnosis:
        """Build the diagnosis of one container (real or placeholder)."""
        spec = resource.container_spec(status.name)

        state_label, reason, message, exit_code = "", "", "", 0
        match status.state:
            case Waiting(reason=reason, message=message):
                state_label = "Waiting"
            case Terminated(reason=reason, message=message, exit_code=exit_code):
                state_label = "Terminated"
            case Running():
                state_label = "Running"

        issues: list[Issue] = []
        check = self._engine.run(resource, spec, status)
        if check is not None:
            severity = IssueSeverity.ERROR if check.title == OOM_TITLE else IssueSeverity.WARNING
            issues.append(
                Issue(
                    severity=severity,
                    title=check.title,
                    raw_error=check.raw_error,
                    suggestion=check.suggestion,
                )
            )

        evidence = LogEvidence()
        if _needs_logs(status):
            evidence = await self._logs.collect(resource, status.name, restarted=status.restart_count > 0)
            if evidence.signatures:
                issues.append(
                    Issue(
                        severity=IssueSeverity.ERROR,
                        title=f"Error signatures found in logs: {', '.join(evidence.signatures)}",
                        suggestion=_LOG_ISSUE_SUGGESTION,
                    )
                )

        return ContainerDiagnosis(
            name=status.name,
            state=state_label,
            reason=reason,
            message=message,
            exit_code=exit_code,
            ready=status.ready,
            resource_info=format_resource_info(spec) if spec is not None else "",
            issues=tuple(issues),
            log_tail=evidence.lines,
            matched_log_signatures=evidence.signatures,
        )
