"""Tests for kubehealer.rules.base.RuleEngine: precedence, registration, isolation."""

from __future__ import annotations

from kubehealer.models.diagnosis import NO_MATCH, CheckResult
from kubehealer.models.resources import (
    ContainerSpec,
    ContainerStatus,
    ResourceSnapshot,
    Running,
    Terminated,
    Waiting,
)
from kubehealer.rules import DEFAULT_RULES, Rule, RuleEngine, build_rule_engine
from kubehealer.rules.r01_oom_killed import OOM_TITLE


def _make_pod() -> ResourceSnapshot:
    return ResourceSnapshot(name="my-pod", namespace="default", phase="Running")


class _AlwaysRule(Rule):
    display_name = "Always"

    def __init__(self, rule_id: str, title: str) -> None:
        self.rule_id = rule_id
        self._title = title

    def check(self, resource: ResourceSnapshot, spec: ContainerSpec | None, status: ContainerStatus) -> CheckResult:
        return CheckResult(matched=True, title=self._title)


class _NeverRule(Rule):
    rule_id = "never"
    display_name = "Never"

    def check(self, resource: ResourceSnapshot, spec: ContainerSpec | None, status: ContainerStatus) -> CheckResult:
        return NO_MATCH


class _BrokenRule(Rule):
    rule_id = "broken"
    display_name = "Broken"

    def check(self, resource: ResourceSnapshot, spec: ContainerSpec | None, status: ContainerStatus) -> CheckResult:
        raise RuntimeError("boom")


class TestDefaultRules:
    def test_default_order_is_precedence(self) -> None:
        engine = build_rule_engine()
        assert [r.rule_id for r in engine.rules] == [
            "R01_oom_killed",
            "R02_image_pull",
            "R03_crash_loop",
            "R04_unschedulable",
        ]
        assert len(DEFAULT_RULES) == 4

    def test_crash_loop_after_oom_reported_as_oom(self) -> None:
        status = ContainerStatus(
            name="app",
            restart_count=5,
            state=Waiting(reason="CrashLoopBackOff", message="back-off"),
            last_state=Terminated(reason="OOMKilled", exit_code=137),
        )
        result = build_rule_engine().run(_make_pod(), ContainerSpec(name="app"), status)

        assert result is not None
        assert result.title == OOM_TITLE

    def test_no_match_returns_none(self) -> None:
        status = ContainerStatus(name="app", ready=True, state=Running())
        assert build_rule_engine().run(_make_pod(), ContainerSpec(name="app"), status) is None


class TestRegistration:
    def test_extra_rules_appended_after_defaults(self) -> None:
        extra = _AlwaysRule("custom", "Custom")
        engine = build_rule_engine(extra_rules=[extra])

        assert engine.rules[-1] is extra
        assert len(engine.rules) == len(DEFAULT_RULES) + 1

    def test_first_registered_match_wins(self) -> None:
        engine = RuleEngine([_NeverRule(), _AlwaysRule("first", "First")])
        engine.register(_AlwaysRule("second", "Second"))

        result = engine.run(_make_pod(), None, ContainerStatus(name="app"))
        assert result is not None
        assert result.title == "First"

    def test_extra_rule_fires_when_defaults_do_not(self) -> None:
        engine = build_rule_engine(extra_rules=[_AlwaysRule("custom", "Custom")])
        status = ContainerStatus(name="app", ready=True, state=Running())

        result = engine.run(_make_pod(), None, status)
        assert result is not None
        assert result.title == "Custom"


class TestRuleIsolation:
    def test_raising_rule_is_skipped(self) -> None:
        engine = RuleEngine([_BrokenRule(), _AlwaysRule("fallback", "Fallback")])

        result = engine.run(_make_pod(), None, ContainerStatus(name="app"))
        assert result is not None
        assert result.title == "Fallback"

    def test_only_raising_rules_yield_none(self) -> None:
        engine = RuleEngine([_BrokenRule()])
        assert engine.run(_make_pod(), None, ContainerStatus(name="app")) is None
