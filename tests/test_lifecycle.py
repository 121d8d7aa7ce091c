"""Tests for the engine-agnostic waiter lifecycle"""

import pytest
from conftest import WAIT_START, FakeClock, ScriptedFetcher, in_progress_record, record

from waiter.lifecycle import WaiterLifecycle, WaitInputs
from waiter.loop import DeploymentWaiter
from waiter.models import WaiterPhase

PROPS = {
    "cluster": "prod",
    "service": "web",
    "deployment_id": None,
    "region": "eu-west-1",
    "poll_interval": 2.0,
    "timeout": 60.0,
    "backoff_multiplier": 2.0,
    "max_interval": 10.0,
    "max_transient_errors": 3.0,
}


def make_lifecycle(fetcher, regions=None):
    clock = FakeClock()

    def fetcher_factory(region):
        if regions is not None:
            regions.append(region)
        return fetcher

    def waiter_factory(f):
        return DeploymentWaiter(f, clock=clock, now=lambda: WAIT_START, pause=clock.pause)

    return WaiterLifecycle(fetcher_factory, waiter_factory)


class TestWaitInputs:
    def test_parses_reference_budget_and_region(self):
        inputs = WaitInputs.from_mapping(PROPS)
        assert str(inputs.reference) == "prod/web"
        assert inputs.region == "eu-west-1"
        assert inputs.budget.poll_interval == 2.0
        assert inputs.budget.max_transient_errors == 3
        assert isinstance(inputs.budget.max_transient_errors, int)

    def test_unset_budget_keys_use_defaults(self):
        inputs = WaitInputs.from_mapping({"cluster": "prod", "service": "web"})
        assert inputs.budget.timeout == 900
        assert inputs.region is None

    def test_deployment_id(self):
        inputs = WaitInputs.from_mapping({**PROPS, "deployment_id": "ecs-svc/2"})
        assert inputs.reference.deployment_id == "ecs-svc/2"
        assert str(inputs.reference) == "prod/web@ecs-svc/2"

    @pytest.mark.parametrize("missing", ["cluster", "service"])
    def test_missing_reference_key(self, missing):
        with pytest.raises(ValueError, match=missing):
            WaitInputs.from_mapping({**PROPS, missing: None})

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            WaitInputs.from_mapping({**PROPS, "timeout": 0})


class TestBeginWait:
    def test_returns_terminal_result(self):
        regions = []
        fetcher = ScriptedFetcher(in_progress_record(), record())
        result = make_lifecycle(fetcher, regions).begin_wait(PROPS)
        assert result.status is WaiterPhase.COMPLETED
        assert result.to_outputs() == {"status": "COMPLETED", "failure_message": None}
        assert regions == ["eu-west-1"]

    def test_timeout_result(self):
        fetcher = ScriptedFetcher(in_progress_record())
        result = make_lifecycle(fetcher).begin_wait(PROPS)
        assert result.status is WaiterPhase.TIMED_OUT
        assert result.failure_message.startswith("timed out waiting for deployment")


class TestDiffHooks:
    completed = {**PROPS, "status": "COMPLETED", "failure_message": None}

    def test_is_terminal(self):
        assert WaiterLifecycle.is_terminal({"status": "FAILED"})
        assert not WaiterLifecycle.is_terminal({"status": "IN_PROGRESS"})
        assert not WaiterLifecycle.is_terminal({"status": "bogus"})
        assert not WaiterLifecycle.is_terminal({})

    def test_unchanged_completed_needs_no_wait(self):
        assert not WaiterLifecycle().needs_wait(self.completed, dict(PROPS))

    def test_changed_input_needs_wait(self):
        news = {**PROPS, "deployment_id": "ecs-svc/3"}
        assert WaiterLifecycle().needs_wait(self.completed, news)

    @pytest.mark.parametrize("status", ["FAILED", "TIMED_OUT", "ABANDONED", None])
    def test_unsuccessful_result_needs_wait(self, status):
        olds = {**PROPS, "status": status, "failure_message": "x"}
        assert WaiterLifecycle().needs_wait(olds, dict(PROPS))

    def test_on_removal_is_noop(self):
        assert WaiterLifecycle.on_removal(self.completed) is None
