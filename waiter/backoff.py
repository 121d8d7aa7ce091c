"""
Backoff/Deadline Controller.

Owns the polling cadence and the overall time limit of a single wait. The
deadline is an explicit value computed from an injectable monotonic clock,
so tests can drive time without sleeping and concurrent waits never share
timing state.
"""

import random
import time
from typing import Callable

from waiter.models import WaitBudget

Clock = Callable[[], float]


def format_elapsed(seconds: float) -> str:
    """
    Render a duration for operator-facing messages.

    Examples: 0.4 -> "0s", 2.9999 -> "3s", 125.2 -> "2m5s", 3725 -> "1h2m5s".
    """
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class Deadline:
    """An absolute point on a monotonic clock."""

    def __init__(self, timeout: float, clock: Clock = time.monotonic):
        self._clock = clock
        self.started_at = clock()
        self.expires_at = self.started_at + timeout

    def elapsed(self) -> float:
        return self._clock() - self.started_at

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at


class BackoffController:
    """
    Decides how long to wait before the next observation and when to stop.

    The base interval starts at ``budget.poll_interval`` and is multiplied by
    ``budget.backoff_multiplier`` after every delay handed out, never
    exceeding ``budget.max_interval``. Each delay is the base interval with
    +/-``budget.jitter`` applied, clamped to the cap and to the time left
    before the deadline.

    Transient read failures are counted separately: ``record_transient_error``
    reports when ``budget.max_transient_errors`` consecutive reads have
    failed, and ``record_observation`` resets the count.
    """

    def __init__(
        self,
        budget: WaitBudget,
        clock: Clock = time.monotonic,
        rng: random.Random | None = None,
    ):
        self.budget = budget
        self.deadline = Deadline(budget.timeout, clock)
        self._rng = rng or random.Random()
        self._interval = budget.poll_interval
        self.transient_errors = 0

    @property
    def interval(self) -> float:
        """The base (un-jittered) interval the next delay is derived from."""
        return self._interval

    def _advance(self) -> float:
        current = self._interval
        self._interval = min(
            self._interval * self.budget.backoff_multiplier,
            self.budget.max_interval,
        )
        return current

    def _jittered(self, interval: float) -> float:
        if not self.budget.jitter:
            return interval
        factor = self._rng.uniform(1 - self.budget.jitter, 1 + self.budget.jitter)
        return min(interval * factor, self.budget.max_interval)

    def next_delay(self) -> tuple[float, bool]:
        """
        Return the delay before the next observation and advance the schedule.

        The second element is True when the next observation would fall at or
        after the deadline. The delay is then cut to the time remaining and the
        caller must report a timeout after it instead of observing again.
        """
        remaining = self.deadline.remaining()
        delay = self._jittered(self._advance())
        if delay >= remaining:
            return remaining, True
        return delay, False

    def record_observation(self) -> None:
        self.transient_errors = 0

    def record_transient_error(self) -> bool:
        """Count one failed read. Returns True once the bound is reached."""
        self.transient_errors += 1
        return self.transient_errors >= self.budget.max_transient_errors

    def expired(self) -> bool:
        return self.deadline.expired()

    def elapsed(self) -> float:
        return self.deadline.elapsed()

    def timeout_message(self) -> str:
        return (
            "timed out waiting for deployment to complete after "
            f"{format_elapsed(self.elapsed())}"
        )
