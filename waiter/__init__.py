"""
Deployment waiter core: block until an ECS service deployment is terminal.

Leaves first:

- **fetcher**: one ``DescribeServices`` read -> ``DeploymentRecord``.
- **classifier**: ``DeploymentRecord`` -> ``WaiterPhase`` (+ failure message).
- **backoff**: polling cadence, jitter, deadline and transient error bound.
- **loop**: ``DeploymentWaiter.wait(reference, budget)`` -> ``WaitResult``.
- **lifecycle**: begin-wait / is-terminal / on-removal hooks for an engine.

Nothing here imports Pulumi; the Pulumi resource lives in
``components.ecs_deployment``.
"""

from waiter.errors import (
    ConfigurationError,
    DeploymentFailedError,
    TransientObservationError,
    WaiterError,
)
from waiter.fetcher import EcsStatusFetcher
from waiter.lifecycle import WaiterLifecycle, WaitInputs
from waiter.loop import DeploymentWaiter
from waiter.models import (
    DeploymentRecord,
    DeploymentReference,
    WaitBudget,
    WaiterPhase,
    WaitResult,
)

__all__ = [
    "ConfigurationError",
    "DeploymentFailedError",
    "DeploymentRecord",
    "DeploymentReference",
    "DeploymentWaiter",
    "EcsStatusFetcher",
    "TransientObservationError",
    "WaitBudget",
    "WaitInputs",
    "WaitResult",
    "WaiterError",
    "WaiterLifecycle",
    "WaiterPhase",
]
