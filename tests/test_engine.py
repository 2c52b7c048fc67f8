"""
Tests for the step runner — failure policies, satisfied predicates, env threading.
"""

import pytest

from devbootstrap.adapters.mock import MockAdapter
from devbootstrap.adapters.registry import AdapterRegistry
from devbootstrap.core.engine.executor import (
    SanityCheckError,
    Step,
    StepFailed,
    StepPolicy,
    StepRunner,
)
from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.models.environment import BootstrapEnv


def _action(action_id: str) -> Action:
    return Action(id=action_id, adapter="shell", params={"argv": ["true"]})


@pytest.fixture
def runner(mock_registry: AdapterRegistry) -> StepRunner:
    return StepRunner(mock_registry, BootstrapEnv(env={"HOME": "/h"}))


class TestStep:
    def test_needs_action_or_func(self):
        with pytest.raises(ValueError):
            Step(name="empty")

    def test_rejects_both(self):
        with pytest.raises(ValueError):
            Step(name="both", action=_action("x"), func=lambda r: Receipt.success("a", "x"))

    def test_run_rejects_step_emptied_after_creation(self, runner: StepRunner):
        step = Step(name="emptied", action=_action("emptied"))
        step.action = None
        with pytest.raises(ValueError, match="nothing to run"):
            runner.run(step)


class TestPolicies:
    def test_success_recorded(self, runner: StepRunner, mock: MockAdapter):
        runner.run(Step(name="one", action=_action("one")))
        assert runner.report.succeeded == 1
        assert mock.action_ids == ["one"]

    def test_propagate_raises_with_exit_code(self, runner: StepRunner, mock: MockAdapter):
        mock.set_failure("apt", error="E: Unable to locate package", return_code=100)
        with pytest.raises(StepFailed) as exc_info:
            runner.run(Step(name="apt", action=_action("apt")))
        assert exc_info.value.exit_code == 100
        assert exc_info.value.step == "apt"

    def test_propagate_without_code_exits_one(self, runner: StepRunner):
        def _fail(r: StepRunner) -> Receipt:
            return Receipt.failure(adapter="runner", action_id="f", error="boom")

        with pytest.raises(StepFailed) as exc_info:
            runner.run(Step(name="f", func=_fail))
        assert exc_info.value.exit_code == 1

    def test_best_effort_continues(self, runner: StepRunner, mock: MockAdapter):
        mock.set_failure("ruby")
        report = runner.run_all([
            Step(name="ruby", action=_action("ruby"), policy=StepPolicy.BEST_EFFORT),
            Step(name="after", action=_action("after")),
        ])
        assert report.failed_steps == ["ruby"]
        assert mock.action_ids == ["ruby", "after"]

    def test_fatal_raises_sanity_error(self, runner: StepRunner, mock: MockAdapter):
        mock.set_failure("sanity")
        step = Step(
            name="sanity",
            action=_action("sanity"),
            policy=StepPolicy.FATAL,
            error="ERROR: thing didn't load",
            hint="Tip: source it",
        )
        with pytest.raises(SanityCheckError) as exc_info:
            runner.run_all([step, Step(name="never", action=_action("never"))])
        assert str(exc_info.value) == "ERROR: thing didn't load"
        assert exc_info.value.hint == "Tip: source it"
        assert exc_info.value.exit_code == 1
        assert "never" not in mock.action_ids


class TestSatisfied:
    def test_satisfied_step_is_skipped(self, runner: StepRunner, mock: MockAdapter):
        receipt = runner.run(Step(
            name="brew", action=_action("brew"), satisfied=lambda env: True,
        ))
        assert receipt.skipped
        assert mock.action_ids == []

    def test_predicate_sees_current_env(self, runner: StepRunner, mock: MockAdapter):
        runner.update_env({"READY": "1"})
        runner.run(Step(
            name="x", action=_action("x"), satisfied=lambda env: env.get("READY") == "1",
        ))
        assert mock.action_ids == []

    def test_announce_only_when_run(self, mock_registry: AdapterRegistry):
        lines: list[str] = []
        runner = StepRunner(mock_registry, BootstrapEnv(), announce=lines.append)
        runner.run(Step(name="a", action=_action("a"), announce="Installing a..."))
        runner.run(Step(name="b", action=_action("b"), announce="Installing b...",
                        satisfied=lambda env: True))
        assert lines == ["Installing a..."]


class TestEnvThreading:
    def test_updates_reach_later_actions(self, runner: StepRunner, mock: MockAdapter):
        def _export(r: StepRunner) -> Receipt:
            r.update_env({"SDKMAN_DIR": "/h/.sdkman"})
            return Receipt.success(adapter="runner", action_id="exports")

        runner.run_all([
            Step(name="exports", func=_export),
            Step(name="use", action=_action("use")),
        ])
        assert mock.call_log[0].env.get("SDKMAN_DIR") == "/h/.sdkman"
        assert mock.call_log[0].env.get("HOME") == "/h"

    def test_merge_returns_new_context(self):
        env = BootstrapEnv(env={"A": "1"})
        merged = env.merged({"B": "2"})
        assert env.env == {"A": "1"}
        assert merged.env == {"A": "1", "B": "2"}


class TestReport:
    def test_to_dict(self, runner: StepRunner, mock: MockAdapter):
        mock.set_failure("b")
        runner.run_all([
            Step(name="a", action=_action("a")),
            Step(name="b", action=_action("b"), policy=StepPolicy.BEST_EFFORT),
            Step(name="c", action=_action("c"), satisfied=lambda env: True),
        ])
        data = runner.report.to_dict()
        assert (data["total"], data["succeeded"], data["failed"], data["skipped"]) == (3, 1, 1, 1)
        assert data["steps"]["b"]["status"] == "failed"
