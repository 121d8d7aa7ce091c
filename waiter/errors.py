"""
Error taxonomy for the deployment waiter.

Only ``ConfigurationError`` ever escapes ``DeploymentWaiter.wait`` as an
exception. ``TransientObservationError`` is absorbed by the wait loop up to
the budget's bound, and deployment failures and timeouts are reported as a
``WaitResult``. ``DeploymentFailedError`` is raised by
``WaitResult.raise_for_status()`` for callers that prefer exceptions.
"""


class WaiterError(Exception):
    pass


class ConfigurationError(WaiterError):
    """The referenced cluster or service does not exist. Never retried."""


class TransientObservationError(WaiterError):
    """A single status read failed (network, throttling, 5xx). Retryable."""


class DeploymentFailedError(WaiterError):
    """A wait ended in any phase other than COMPLETED."""

    def __init__(self, result):
        super().__init__(f"ECS deployment failed: {result.failure_message}")
        self.result = result
