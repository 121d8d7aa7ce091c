"""Shared fakes and record builders for the waiter tests."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from waiter.models import DeploymentRecord, DeploymentSummary, ServiceEvent

WAIT_START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock advanced only by ``pause`` or explicitly."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.pauses: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def pause(self, cancel: threading.Event, seconds: float) -> bool:
        self.pauses.append(seconds)
        self.advance(seconds)
        return cancel.is_set()


class ScriptedFetcher:
    """Plays back records or exceptions; the last entry repeats forever."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls = 0

    def fetch(self, reference):
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(step, Exception):
            raise step
        return step


def deployment(
    id: str = "ecs-svc/2",
    status: str = "PRIMARY",
    desired: int | None = 3,
    running: int | None = 3,
    pending: int | None = 0,
    rollout_state: str | None = "COMPLETED",
    rollout_state_reason: str | None = None,
    created_at: datetime | None = WAIT_START - timedelta(minutes=1),
) -> DeploymentSummary:
    return DeploymentSummary(
        id=id,
        status=status,
        task_definition="arn:aws:ecs:eu-west-1:123456789012:task-definition/web:7",
        desired_count=desired,
        running_count=running,
        pending_count=pending,
        rollout_state=rollout_state,
        rollout_state_reason=rollout_state_reason,
        created_at=created_at,
    )


def event(message: str, seconds_after_start: float) -> ServiceEvent:
    return ServiceEvent(
        created_at=WAIT_START + timedelta(seconds=seconds_after_start),
        message=message,
    )


def record(*deployments: DeploymentSummary, events=()) -> DeploymentRecord:
    return DeploymentRecord(
        service_name="web",
        service_status="ACTIVE",
        deployments=tuple(deployments) or (deployment(),),
        events=tuple(events),
    )


def in_progress_record() -> DeploymentRecord:
    return record(
        deployment(running=1, pending=2, rollout_state="IN_PROGRESS"),
        deployment(id="ecs-svc/1", status="ACTIVE", running=2, pending=0),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
