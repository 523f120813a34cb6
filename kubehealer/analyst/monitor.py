"""ChangeMonitor: decides when a Pod change warrants a new diagnosis.

Trigger predicate:
    add     -- phase is neither Running nor Succeeded
    update  -- ignored unless the phase changed or restarts increased
               (absorbs periodic resync noise); then triggers when the new
               phase is not Running or restarts increased
    delete  -- never triggers

Triggers for the same identity inside the cooldown window are suppressed.
The cooldown stamp is written before dispatch, so a slow diagnosis does not
let duplicates through. Handlers never await the diagnosis itself.
"""

from __future__ import annotations

from kubehealer.analyst.analyzer import Analyzer
from kubehealer.analyst.cooldown import CooldownTracker
from kubehealer.analyst.queue import DiagnosisQueue, QueueFullError
from kubehealer.collector.sources import ReportSink
from kubehealer.models.resources import PodPhase, ResourceSnapshot
from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import (
    diagnosis_dropped_total,
    diagnosis_suppressed_total,
    notifications_total,
)

_logger = get_logger("monitor")

_HEALTHY_ON_ADD: frozenset[str] = frozenset({PodPhase.RUNNING, PodPhase.SUCCEEDED})


def should_diagnose_add(pod: ResourceSnapshot) -> bool:
    return pod.phase not in _HEALTHY_ON_ADD


def should_diagnose_update(old: ResourceSnapshot, new: ResourceSnapshot) -> bool:
    restarts_increased = new.total_restarts > old.total_restarts
    if old.phase == new.phase and not restarts_increased:
        return False
    return new.phase != PodPhase.RUNNING or restarts_increased


class ChangeMonitor:
    """Pod notification handler that schedules diagnoses on a DiagnosisQueue."""

    def __init__(
        self,
        analyzer: Analyzer,
        sink: ReportSink,
        cooldown: CooldownTracker,
        queue: DiagnosisQueue,
    ) -> None:
        self._analyzer = analyzer
        self._sink = sink
        self._cooldown = cooldown
        self._queue = queue

    # ------------------------------------------------------------------
    # Notification callbacks
    # ------------------------------------------------------------------

    def on_add(self, pod: ResourceSnapshot) -> None:
        notifications_total.labels(kind="add").inc()
        _logger.info("pod_added", pod=f"{pod.namespace}/{pod.name}", phase=pod.phase)
        if should_diagnose_add(pod):
            self.schedule(pod, trigger="add")

    def on_update(self, old: ResourceSnapshot, new: ResourceSnapshot) -> None:
        notifications_total.labels(kind="update").inc()
        if old.phase == new.phase and new.total_restarts <= old.total_restarts:
            return

        _logger.info(
            "pod_updated",
            pod=f"{new.namespace}/{new.name}",
            old_phase=old.phase,
            new_phase=new.phase,
            restarts=new.total_restarts,
        )
        if should_diagnose_update(old, new):
            self.schedule(new, trigger="update")

    def on_delete(self, pod: ResourceSnapshot) -> None:
        notifications_total.labels(kind="delete").inc()
        _logger.info("pod_deleted", pod=f"{pod.namespace}/{pod.name}")

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, pod: ResourceSnapshot, trigger: str = "") -> bool:
        """Dispatch a diagnosis of ``pod`` unless it is cooling down.

        Returns True when a diagnosis was enqueued.
        """
        key = pod.identity
        if not self._cooldown.try_acquire(key):
            diagnosis_suppressed_total.inc()
            _logger.info(
                "diagnosis_suppressed_cooldown",
                pod=f"{pod.namespace}/{pod.name}",
                cooldown_s=self._cooldown.cooldown_s,
            )
            return False

        async def _job() -> None:
            await self._diagnose_and_report(pod)

        try:
            self._queue.submit(key, _job)
        except QueueFullError as exc:
            # Let a later transition for this pod retry.
            self._cooldown.release(key)
            diagnosis_dropped_total.inc()
            _logger.warning("diagnosis_dropped_queue_full", pod=f"{pod.namespace}/{pod.name}", error=str(exc))
            return False

        _logger.info(
            "diagnosis_scheduled",
            pod=f"{pod.namespace}/{pod.name}",
            trigger=trigger,
            tracked=len(self._cooldown),
        )
        return True

    async def _diagnose_and_report(self, pod: ResourceSnapshot) -> None:
        result = await self._analyzer.analyze_pod(pod)
        location = await self._sink.write(result)
        _logger.info(
            "report_written",
            pod=f"{pod.namespace}/{pod.name}",
            issues=result.has_issues,
            location=str(location),
        )
