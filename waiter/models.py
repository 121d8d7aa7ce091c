"""
Value types shared by the waiter components.

Every type here is immutable. A ``DeploymentReference`` and a ``WaitBudget``
are fixed for the lifetime of one wait; a ``DeploymentRecord`` is one
observation and is dropped as soon as it has been classified; a
``WaitResult`` is the single value a wait hands back to its caller.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from waiter.errors import DeploymentFailedError


class WaiterPhase(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    UNKNOWN = "UNKNOWN"
    # The caller cancelled the wait; says nothing about the deployment itself.
    ABANDONED = "ABANDONED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES: frozenset[WaiterPhase] = frozenset(
    {
        WaiterPhase.COMPLETED,
        WaiterPhase.FAILED,
        WaiterPhase.TIMED_OUT,
        WaiterPhase.ABANDONED,
    }
)


@dataclass(frozen=True)
class DeploymentReference:
    """
    What to watch.

    Attributes:
        cluster: ECS cluster name or ARN.
        service: ECS service name or ARN within the cluster.
        deployment_id: Optional deployment id (e.g. "ecs-svc/123") expected to
            become the primary deployment. When omitted the service's current
            PRIMARY deployment is tracked.
    """

    cluster: str
    service: str
    deployment_id: str | None = None

    def __post_init__(self):
        if not self.cluster:
            raise ValueError("cluster is required")
        if not self.service:
            raise ValueError("service is required")

    def __str__(self) -> str:
        target = f"{self.cluster}/{self.service}"
        return f"{target}@{self.deployment_id}" if self.deployment_id else target


@dataclass(frozen=True)
class ServiceEvent:
    created_at: datetime | None
    message: str
    id: str | None = None


@dataclass(frozen=True)
class DeploymentSummary:
    """One entry of the service's ``deployments`` list.

    Counts are ``None`` when the API response omitted them.
    """

    id: str
    status: str | None
    task_definition: str | None = None
    desired_count: int | None = None
    running_count: int | None = None
    pending_count: int | None = None
    failed_tasks: int | None = None
    rollout_state: str | None = None
    rollout_state_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_primary(self) -> bool:
        return self.status == "PRIMARY"


@dataclass(frozen=True)
class DeploymentRecord:
    """
    A point-in-time observation of one service.

    ``events`` are kept in the order the API returns them (newest first).
    """

    service_name: str
    service_status: str | None
    deployments: tuple[DeploymentSummary, ...] = ()
    events: tuple[ServiceEvent, ...] = ()

    @property
    def primary(self) -> DeploymentSummary | None:
        return next((d for d in self.deployments if d.is_primary), None)

    def find(self, deployment_id: str) -> DeploymentSummary | None:
        return next((d for d in self.deployments if d.id == deployment_id), None)


DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_TIMEOUT = 900.0
DEFAULT_BACKOFF_MULTIPLIER = 1.5
DEFAULT_MAX_INTERVAL = 30.0
DEFAULT_JITTER = 0.2
DEFAULT_MAX_TRANSIENT_ERRORS = 5


@dataclass(frozen=True)
class WaitBudget:
    """
    Polling cadence and overall time limit of one wait.

    Attributes:
        poll_interval: Delay in seconds before the second observation.
        timeout: Seconds from the start of the wait after which no further
            observation is taken.
        backoff_multiplier: Factor applied to the interval after each
            non-terminal observation (>= 1).
        max_interval: Upper bound in seconds for any single delay.
        jitter: Relative jitter applied to each delay, e.g. 0.2 for +/-20%.
        max_transient_errors: Consecutive failed reads tolerated before the
            wait fails with "lost visibility into deployment status".
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    max_interval: float = DEFAULT_MAX_INTERVAL
    jitter: float = DEFAULT_JITTER
    max_transient_errors: int = DEFAULT_MAX_TRANSIENT_ERRORS

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.backoff_multiplier < 1:
            raise ValueError(
                f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}"
            )
        if self.max_interval < self.poll_interval:
            raise ValueError(
                f"max_interval ({self.max_interval}) must not be below "
                f"poll_interval ({self.poll_interval})"
            )
        if not 0 <= self.jitter < 1:
            raise ValueError(f"jitter must be in [0, 1), got {self.jitter}")
        if self.max_transient_errors < 1:
            raise ValueError(
                f"max_transient_errors must be positive, got {self.max_transient_errors}"
            )


@dataclass(frozen=True)
class Classification:
    phase: WaiterPhase
    message: str | None = None


@dataclass(frozen=True)
class WaitResult:
    """
    Terminal outcome of one wait. The only value exposed to the caller.

    ``failure_message`` is set for every status except COMPLETED and must be
    shown to the operator verbatim.
    """

    status: WaiterPhase
    failure_message: str | None = None
    elapsed: float = field(default=0.0, compare=False)

    def __post_init__(self):
        if not self.status.is_terminal:
            raise ValueError(f"{self.status.value} is not a terminal phase")
        if (self.status is WaiterPhase.COMPLETED) != (self.failure_message is None):
            raise ValueError(
                "failure_message must be set exactly when status is not COMPLETED"
            )

    @property
    def succeeded(self) -> bool:
        return self.status is WaiterPhase.COMPLETED

    def raise_for_status(self) -> None:
        if not self.succeeded:
            raise DeploymentFailedError(self)

    def to_outputs(self) -> dict[str, Any]:
        return {"status": self.status.value, "failure_message": self.failure_message}

    @classmethod
    def from_outputs(cls, outputs: Mapping[str, Any]) -> "WaitResult":
        return cls(
            status=WaiterPhase(outputs["status"]),
            failure_message=outputs.get("failure_message"),
        )
