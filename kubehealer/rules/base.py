"""Rule base class and rule engine.

Every deterministic diagnosis rule inherits from Rule. The RuleEngine holds
rules in registration order and evaluates them with first-match
short-circuiting: once a sufficiently explanatory cause is found, weaker or
overlapping heuristics do not also fire.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from kubehealer.models.diagnosis import CheckResult
from kubehealer.models.resources import ContainerSpec, ContainerStatus, ResourceSnapshot
from kubehealer.observability.logging import get_logger
from kubehealer.observability.metrics import rule_matches_total

_logger = get_logger("rule_engine")


class Rule(ABC):
    """Abstract base class for all diagnosis rules.

    Subclasses MUST define class-level attributes:
        rule_id       -- e.g. "R01_oom_killed"
        display_name  -- e.g. "OOMKilled"

    check() MUST be pure: no side effects, no I/O. A rule that cannot
    establish its condition returns NO_MATCH rather than raising.
    """

    rule_id: str
    display_name: str

    @abstractmethod
    def check(
        self,
        resource: ResourceSnapshot,
        spec: ContainerSpec | None,
        status: ContainerStatus,
    ) -> CheckResult:
        """Evaluate this rule against one container of ``resource``."""


class RuleEngine:
    """Evaluates a container against an ordered sequence of rules.

    Order is precedence: the first matching rule wins and evaluation stops.
    Rules are never re-sorted; ``register`` appends at the lowest precedence.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: list[Rule] = list(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    def register(self, rule: Rule) -> None:
        """Append a rule after all currently registered rules."""
        self._rules.append(rule)

    def run(
        self,
        resource: ResourceSnapshot,
        spec: ContainerSpec | None,
        status: ContainerStatus,
    ) -> CheckResult | None:
        """Return the first matching CheckResult, or None if nothing matched."""
        for rule in self._rules:
            try:
                result = rule.check(resource, spec, status)
            except Exception as exc:
                # Only third-party registered rules can get here.
                _logger.error(
                    "rule_check_exception",
                    rule_id=rule.rule_id,
                    pod=f"{resource.namespace}/{resource.name}",
                    container=status.name,
                    error=str(exc),
                )
                continue

            if not result.matched:
                continue

            rule_matches_total.labels(rule_id=rule.rule_id).inc()
            _logger.info(
                "rule_matched",
                rule_id=rule.rule_id,
                pod=f"{resource.namespace}/{resource.name}",
                container=status.name,
                title=result.title,
            )
            return result

        _logger.debug(
            "rule_engine_no_match",
            pod=f"{resource.namespace}/{resource.name}",
            container=status.name,
            rules_evaluated=len(self._rules),
        )
        return None
