"""R04 Unschedulable.

Matches Pending pods whose PodScheduled condition is explicitly False. Such
pods frequently have no container statuses at all; the Analyzer evaluates
this rule against a placeholder status in that case.
"""

from __future__ import annotations

from kubehealer.models.diagnosis import NO_MATCH, CheckResult
from kubehealer.models.resources import ContainerSpec, ContainerStatus, PodPhase, ResourceSnapshot
from kubehealer.rules.base import Rule

_POD_SCHEDULED = "PodScheduled"


class UnschedulableRule(Rule):
    """Matches phase Pending with PodScheduled=False."""

    rule_id = "R04_unschedulable"
    display_name = "Unschedulable"

    def check(
        self,
        resource: ResourceSnapshot,
        spec: ContainerSpec | None,
        status: ContainerStatus,
    ) -> CheckResult:
        if resource.phase != PodPhase.PENDING:
            return NO_MATCH

        cond = resource.condition(_POD_SCHEDULED)
        if cond is None or cond.status != "False":
            return NO_MATCH

        return CheckResult(
            matched=True,
            title="Pod cannot be scheduled (Pending)",
            raw_error=cond.message,
            suggestion=(
                "The cluster lacks resources or no node satisfies the placement constraints "
                "(nodeSelector/affinity/taints); see the recent events below for details."
            ),
        )
