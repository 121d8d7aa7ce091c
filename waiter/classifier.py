"""
Deployment Classifier: map one ``DeploymentRecord`` to a ``WaiterPhase``.

Rules, first match wins:

1. A failure event (rollback, failed deployment, circuit breaker) newer than
   the start of the wait, or a tracked deployment whose rollout state is
   FAILED, yields FAILED with that event's text.
2. Running == desired, nothing pending and the rollout is in steady state
   yields COMPLETED.
3. A tracked deployment that is no longer PRIMARY, or an expected
   deployment no longer listed while another one is PRIMARY, yields FAILED
   with "deployment superseded before completion".
4. Anything else is IN_PROGRESS, or PENDING while no task is running yet.
5. A record the rules cannot be applied to (no PRIMARY deployment, missing
   or negative counts) is UNKNOWN. The wait loop keeps polling on UNKNOWN.

Pure functions only; no I/O and no clock access.
"""

import re
from datetime import datetime

from waiter.models import (
    Classification,
    DeploymentRecord,
    DeploymentReference,
    DeploymentSummary,
    ServiceEvent,
    WaiterPhase,
)

SUPERSEDED_MESSAGE = "deployment superseded before completion"

# ECS service event texts that indicate the rollout has failed or is being
# reverted, e.g. "(service web) (deployment ecs-svc/1) deployment failed:
# tasks failed to start." or "(service web) rolling back to deployment ...".
FAILURE_EVENT_PATTERN = re.compile(
    r"deployment failed|rolling back|rolled back|circuit breaker|did not stabilize",
    re.IGNORECASE,
)

ROLLOUT_COMPLETED = "COMPLETED"
ROLLOUT_FAILED = "FAILED"


def is_failure_event(event: ServiceEvent) -> bool:
    return bool(FAILURE_EVENT_PATTERN.search(event.message or ""))


def latest_failure_event(
    events: tuple[ServiceEvent, ...],
    since: datetime,
) -> ServiceEvent | None:
    """
    Return the most recent failure-indicating event created after ``since``.

    Events without a timestamp cannot be proven newer than the wait and are
    ignored.
    """
    candidates = [
        event
        for event in events
        if event.created_at is not None
        and event.created_at > since
        and is_failure_event(event)
    ]
    return max(candidates, key=lambda e: e.created_at, default=None)


def tracked_deployment(
    record: DeploymentRecord,
    reference: DeploymentReference,
) -> DeploymentSummary | None:
    if reference.deployment_id:
        return record.find(reference.deployment_id)
    return record.primary


def _counts(deployment: DeploymentSummary) -> tuple[int, int, int] | None:
    counts = (
        deployment.desired_count,
        deployment.running_count,
        deployment.pending_count,
    )
    if any(c is None or c < 0 for c in counts):
        return None
    return counts


def is_steady_state(record: DeploymentRecord, deployment: DeploymentSummary) -> bool:
    if deployment.rollout_state is not None:
        return deployment.rollout_state == ROLLOUT_COMPLETED
    # Services without rollout state tracking (e.g. external deployment
    # controllers) are steady once the old deployments have drained.
    return len(record.deployments) == 1


def classify(
    record: DeploymentRecord,
    reference: DeploymentReference,
    since: datetime,
) -> Classification:
    """
    Classify one observation of the referenced service.

    Args:
        record: The observation to classify.
        reference: The deployment being waited on; selects the tracked
            deployment inside ``record``.
        since: Wall-clock start of the wait (timezone-aware). Failure events
            at or before this instant belong to earlier rollouts.

    Returns:
        The phase, with a message when the phase is FAILED.
    """
    failure = latest_failure_event(record.events, since)
    if failure is not None:
        return Classification(WaiterPhase.FAILED, failure.message)

    deployment = tracked_deployment(record, reference)
    if deployment is None:
        # ECS drops INACTIVE deployments from the list, so an expected
        # deployment that is gone while another one is PRIMARY was replaced.
        if reference.deployment_id and record.primary is not None:
            return Classification(WaiterPhase.FAILED, SUPERSEDED_MESSAGE)
        return Classification(WaiterPhase.UNKNOWN)

    if deployment.rollout_state == ROLLOUT_FAILED:
        return Classification(
            WaiterPhase.FAILED,
            deployment.rollout_state_reason or f"deployment {deployment.id} failed",
        )

    counts = _counts(deployment)
    if counts is None:
        return Classification(WaiterPhase.UNKNOWN)
    desired, running, pending = counts

    if (
        deployment.is_primary
        and running == desired
        and pending == 0
        and is_steady_state(record, deployment)
    ):
        return Classification(WaiterPhase.COMPLETED)

    if not deployment.is_primary:
        if record.primary is None:
            return Classification(WaiterPhase.UNKNOWN)
        return Classification(WaiterPhase.FAILED, SUPERSEDED_MESSAGE)

    if running == 0 and desired > 0:
        return Classification(WaiterPhase.PENDING)
    return Classification(WaiterPhase.IN_PROGRESS)
