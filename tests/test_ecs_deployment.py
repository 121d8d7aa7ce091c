"""Tests for the ECS waiter dynamic provider"""

import logging

import pulumi
import pytest

from components.ecs_deployment import (
    EcsWaiterProvider,
    PulumiLogHandler,
    check_wait_outputs,
)
from waiter.lifecycle import WaiterLifecycle
from waiter.models import WaiterPhase, WaitResult

PROPS = {"cluster": "prod", "service": "web", "deployment_id": None}


class FakeLifecycle(WaiterLifecycle):
    def __init__(self, result):
        super().__init__()
        self.result = result
        self.waits = []
        self.removed = []

    def begin_wait(self, props):
        self.waits.append(dict(props))
        return self.result

    def on_removal(self, outputs):
        self.removed.append(outputs)


class LoggingLifecycle(FakeLifecycle):
    def begin_wait(self, props):
        log = logging.getLogger("waiter.loop")
        log.info("Deployment web is IN_PROGRESS")
        log.warning("Transient error reading web")
        log.error("Deployment web FAILED")
        return super().begin_wait(props)


class TestProviderLogging:
    @pytest.fixture
    def forwarded(self, monkeypatch):
        messages = []
        for level in ("info", "warn", "error"):
            monkeypatch.setattr(
                pulumi.log,
                level,
                lambda msg, *args, _level=level, **kwargs: messages.append((_level, msg)),
            )
        return messages

    def test_waiter_logs_reach_pulumi(self, forwarded):
        lifecycle = LoggingLifecycle(WaitResult(WaiterPhase.FAILED, "boom"))
        EcsWaiterProvider(lifecycle).create(dict(PROPS))
        assert forwarded == [
            ("info", "Deployment web is IN_PROGRESS"),
            ("warn", "Transient error reading web"),
            ("error", "Deployment web FAILED"),
        ]

    def test_handler_removed_after_wait(self, forwarded):
        lifecycle = LoggingLifecycle(WaitResult(WaiterPhase.COMPLETED))
        EcsWaiterProvider(lifecycle).create(dict(PROPS))
        logging.getLogger("waiter.loop").warning("after the wait")
        assert all(not isinstance(h, PulumiLogHandler) for h in logging.getLogger("waiter").handlers)
        assert ("warn", "after the wait") not in forwarded


class TestProvider:
    def test_create_records_result(self):
        lifecycle = FakeLifecycle(WaitResult(WaiterPhase.COMPLETED))
        created = EcsWaiterProvider(lifecycle).create(dict(PROPS))
        assert created.id.startswith("prod/web/")
        assert created.outs["status"] == "COMPLETED"
        assert created.outs["failure_message"] is None
        assert created.outs["cluster"] == "prod"

    def test_create_records_failure(self):
        lifecycle = FakeLifecycle(WaitResult(WaiterPhase.FAILED, "tasks failed to start"))
        created = EcsWaiterProvider(lifecycle).create(dict(PROPS))
        assert created.outs["status"] == "FAILED"
        assert created.outs["failure_message"] == "tasks failed to start"

    def test_diff_after_success_without_changes(self):
        provider = EcsWaiterProvider(FakeLifecycle(WaitResult(WaiterPhase.COMPLETED)))
        olds = {**PROPS, "status": "COMPLETED", "failure_message": None}
        assert not provider.diff("id", olds, dict(PROPS)).changes

    def test_diff_after_failure_waits_again(self):
        provider = EcsWaiterProvider(FakeLifecycle(WaitResult(WaiterPhase.COMPLETED)))
        olds = {**PROPS, "status": "TIMED_OUT", "failure_message": "timed out"}
        assert provider.diff("id", olds, dict(PROPS)).changes

    def test_update_waits_on_new_inputs(self):
        lifecycle = FakeLifecycle(WaitResult(WaiterPhase.COMPLETED))
        news = {**PROPS, "deployment_id": "ecs-svc/3"}
        updated = EcsWaiterProvider(lifecycle).update("id", dict(PROPS), news)
        assert lifecycle.waits == [news]
        assert updated.outs["deployment_id"] == "ecs-svc/3"

    def test_delete_never_waits(self):
        lifecycle = FakeLifecycle(WaitResult(WaiterPhase.COMPLETED))
        EcsWaiterProvider(lifecycle).delete("id", dict(PROPS))
        assert lifecycle.waits == []
        assert lifecycle.removed == [PROPS]


class TestCheckWaitOutputs:
    def test_completed_passes(self):
        assert check_wait_outputs("COMPLETED", None) == "COMPLETED"

    @pytest.mark.parametrize("status", ["FAILED", "TIMED_OUT", "ABANDONED"])
    def test_other_statuses_fail_the_run_verbatim(self, status):
        with pytest.raises(pulumi.RunError, match="ECS deployment failed: rolled back"):
            check_wait_outputs(status, "rolled back")
