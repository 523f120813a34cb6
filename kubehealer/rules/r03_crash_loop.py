"""R03 CrashLoopBackOff.

Matches containers that keep restarting. When the previous incarnation's
termination is known, its reason and interpreted exit code are appended to
the raw error so the cause of the last crash is visible.
"""

from __future__ import annotations

from kubehealer.models.diagnosis import NO_MATCH, CheckResult
from kubehealer.models.resources import (
    ContainerSpec,
    ContainerStatus,
    ResourceSnapshot,
    Terminated,
    Waiting,
)
from kubehealer.rules.base import Rule
from kubehealer.rules.exit_codes import explain_exit_code

_CRASH_LOOP_REASON = "CrashLoopBackOff"


class CrashLoopRule(Rule):
    """Matches Waiting containers with reason CrashLoopBackOff."""

    rule_id = "R03_crash_loop"
    display_name = "CrashLoopBackOff"

    def check(
        self,
        resource: ResourceSnapshot,
        spec: ContainerSpec | None,
        status: ContainerStatus,
    ) -> CheckResult:
        state = status.state
        if not isinstance(state, Waiting) or state.reason != _CRASH_LOOP_REASON:
            return NO_MATCH

        raw_error = state.message
        last = status.last_state
        if isinstance(last, Terminated):
            raw_error += f" | last exit: {explain_exit_code(last.exit_code)} ({last.reason})"

        return CheckResult(
            matched=True,
            title="Container keeps restarting (CrashLoopBackOff)",
            raw_error=raw_error,
            suggestion="The application fails on startup; inspect the container logs and its configuration.",
        )
