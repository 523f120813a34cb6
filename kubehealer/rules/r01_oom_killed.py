"""R01 OOMKilled.

Matches containers killed by the Linux OOM killer, either in the current
state or in the previous incarnation's termination record. A container that
is currently backing off after an OOM kill is reported as OOM rather than as
a generic crash loop.
"""

from __future__ import annotations

import re

from kubehealer.models.diagnosis import NO_MATCH, CheckResult
from kubehealer.models.resources import ContainerSpec, ContainerStatus, ResourceSnapshot, Terminated
from kubehealer.rules.base import Rule
from kubehealer.rules.exit_codes import explain_exit_code

OOM_TITLE = "Out of memory (OOMKilled)"

_OOM_REASON = "OOMKilled"
_NUMERIC_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)")


def _termination_of_interest(status: ContainerStatus) -> Terminated | None:
    """Current termination if terminated now, else the last one."""
    if isinstance(status.state, Terminated):
        return status.state
    if isinstance(status.last_state, Terminated):
        return status.last_state
    return None


def _is_zero_quantity(quantity: str) -> bool:
    """Return True for "0", "0Mi", "0.0Gi" and similar."""
    m = _NUMERIC_PREFIX.match(quantity.strip())
    if m is None:
        return False
    return float(m.group(0)) == 0.0


def _memory_suggestion(spec: ContainerSpec | None) -> str:
    if spec is None:
        return "Review the container's memory usage and configure an appropriate memory limit."
    limit = spec.limits.get("memory", "")
    if limit and not _is_zero_quantity(limit):
        return f"Memory limit is {limit}; consider raising it or reducing the application's memory footprint."
    return "No memory limit is set; set resources.limits.memory to protect the node from memory exhaustion."


class OOMKilledRule(Rule):
    """Matches a termination with reason OOMKilled."""

    rule_id = "R01_oom_killed"
    display_name = "OOMKilled"

    def check(
        self,
        resource: ResourceSnapshot,
        spec: ContainerSpec | None,
        status: ContainerStatus,
    ) -> CheckResult:
        term = _termination_of_interest(status)
        if term is None or term.reason != _OOM_REASON:
            return NO_MATCH

        return CheckResult(
            matched=True,
            title=OOM_TITLE,
            raw_error=f"Exit Code: {explain_exit_code(term.exit_code)}",
            suggestion=_memory_suggestion(spec),
        )
