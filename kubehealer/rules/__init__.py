"""Rule registration and public API for the rule engine module.

The default rule set is closed and ordered. Order is precedence::

    OOMKilled > ImagePull > CrashLoop > Unschedulable

A container that is crash-looping because it was OOM-killed is therefore
reported as OOM. Do not sort or alphabetize ``DEFAULT_RULES``.

Usage::

    from kubehealer.rules import build_rule_engine

    engine = build_rule_engine()
    result = engine.run(snapshot, spec, status)
"""

from __future__ import annotations

from collections.abc import Iterable

from kubehealer.observability.logging import get_logger
from kubehealer.rules.base import Rule, RuleEngine
from kubehealer.rules.exit_codes import explain_exit_code
from kubehealer.rules.r01_oom_killed import OOMKilledRule
from kubehealer.rules.r02_image_pull import ImagePullRule
from kubehealer.rules.r03_crash_loop import CrashLoopRule
from kubehealer.rules.r04_unschedulable import UnschedulableRule

__all__ = [
    "DEFAULT_RULES",
    "CrashLoopRule",
    "ImagePullRule",
    "OOMKilledRule",
    "Rule",
    "RuleEngine",
    "UnschedulableRule",
    "build_rule_engine",
    "explain_exit_code",
]

_logger = get_logger("rule_engine.registry")

DEFAULT_RULES: tuple[type[Rule], ...] = (
    OOMKilledRule,
    ImagePullRule,
    CrashLoopRule,
    UnschedulableRule,
)


def build_rule_engine(extra_rules: Iterable[Rule] = ()) -> RuleEngine:
    """Construct a RuleEngine with the default rules followed by ``extra_rules``.

    Extra rules are registered after the defaults and so only fire when no
    default rule matched.
    """
    engine = RuleEngine(rule_cls() for rule_cls in DEFAULT_RULES)
    for rule in extra_rules:
        engine.register(rule)

    _logger.info(
        "rule_engine_built",
        registered=[rule.rule_id for rule in engine.rules],
    )
    return engine
