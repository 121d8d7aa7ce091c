"""
Wait Loop: fetch, classify, then stop or sleep and repeat.

``DeploymentWaiter.wait`` is a blocking call that owns all of its state
(reference, budget, controller, error counter) for its own duration, so any
number of waits can run concurrently on separate threads. Suspension between
polls goes through a ``threading.Event`` supplied by the caller: setting it
cancels the wait promptly with an ABANDONED result, and the same wait on the
event is what enforces the deadline.
"""

import logging
import random
import threading
import time
from datetime import datetime, timezone
from typing import Callable

from waiter.backoff import BackoffController, Clock, format_elapsed
from waiter.classifier import classify
from waiter.errors import TransientObservationError
from waiter.fetcher import StatusFetcher
from waiter.models import (
    DeploymentReference,
    WaitBudget,
    WaiterPhase,
    WaitResult,
)

logger = logging.getLogger(__name__)

LOST_VISIBILITY_MESSAGE = "lost visibility into deployment status"

# Blocks for up to ``seconds``; returns True when the wait was cancelled.
Pause = Callable[[threading.Event, float], bool]


def _event_pause(cancel: threading.Event, seconds: float) -> bool:
    return cancel.wait(seconds)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentWaiter:
    """
    Blocks until one ECS deployment reaches a terminal phase.

    Args:
        fetcher: Source of ``DeploymentRecord`` observations.
        clock: Monotonic clock used for the deadline and backoff.
        now: Wall clock used to tell new service events from old ones.
        pause: Suspends between polls; must return True if cancelled.
        rng: Randomness for jitter.
    """

    def __init__(
        self,
        fetcher: StatusFetcher,
        *,
        clock: Clock = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
        pause: Pause = _event_pause,
        rng: random.Random | None = None,
    ):
        self._fetcher = fetcher
        self._clock = clock
        self._now = now
        self._pause = pause
        self._rng = rng

    def _finish(
        self,
        reference: DeploymentReference,
        controller: BackoffController,
        phase: WaiterPhase,
        message: str | None = None,
    ) -> WaitResult:
        result = WaitResult(phase, message, elapsed=controller.elapsed())
        if result.succeeded:
            logger.info(
                "Deployment %s completed after %s",
                reference,
                format_elapsed(result.elapsed),
            )
        else:
            logger.error("Deployment %s ended %s: %s", reference, phase.value, message)
        return result

    def wait(
        self,
        reference: DeploymentReference,
        budget: WaitBudget,
        cancel: threading.Event | None = None,
    ) -> WaitResult:
        """
        Observe ``reference`` until it completes, fails, or the budget runs out.

        Args:
            reference: The deployment to watch.
            budget: Polling cadence, timeout and transient error bound.
            cancel: Optional event; setting it abandons the wait.

        Returns:
            A ``WaitResult`` whose status is always terminal.

        Raises:
            ConfigurationError: The cluster or service does not exist.
        """
        cancel = cancel or threading.Event()
        controller = BackoffController(budget, self._clock, self._rng)
        started_at = self._now()
        logger.info(
            "Waiting for deployment %s (timeout %s)",
            reference,
            format_elapsed(budget.timeout),
        )

        while True:
            if cancel.is_set():
                return self._abandon(reference, controller)

            try:
                record = self._fetcher.fetch(reference)
            except TransientObservationError as exc:
                if controller.expired():
                    return self._finish(
                        reference,
                        controller,
                        WaiterPhase.TIMED_OUT,
                        controller.timeout_message(),
                    )
                exhausted = controller.record_transient_error()
                logger.warning(
                    "Transient error observing %s (%d/%d): %s",
                    reference,
                    controller.transient_errors,
                    budget.max_transient_errors,
                    exc,
                )
                if exhausted:
                    return self._finish(
                        reference, controller, WaiterPhase.FAILED, LOST_VISIBILITY_MESSAGE
                    )
            else:
                # A read that returns after the deadline is discarded.
                if controller.expired():
                    return self._finish(
                        reference,
                        controller,
                        WaiterPhase.TIMED_OUT,
                        controller.timeout_message(),
                    )
                controller.record_observation()
                outcome = classify(record, reference, started_at)
                if outcome.phase.is_terminal:
                    return self._finish(
                        reference, controller, outcome.phase, outcome.message
                    )
                if outcome.phase is WaiterPhase.UNKNOWN:
                    logger.warning(
                        "Unrecognised deployment state for %s; still waiting",
                        reference,
                    )
                else:
                    logger.info("Deployment %s is %s", reference, outcome.phase.value)

            delay, last = controller.next_delay()
            if self._pause(cancel, delay):
                return self._abandon(reference, controller)
            if last or controller.expired():
                return self._finish(
                    reference,
                    controller,
                    WaiterPhase.TIMED_OUT,
                    controller.timeout_message(),
                )

    def _abandon(
        self,
        reference: DeploymentReference,
        controller: BackoffController,
    ) -> WaitResult:
        return self._finish(
            reference,
            controller,
            WaiterPhase.ABANDONED,
            f"wait abandoned after {format_elapsed(controller.elapsed())}",
        )
