"""
Gate a Pulumi program on an ECS service deployment.

``EcsWaiter`` is a dynamic resource whose provider blocks in create/update
until the deployment is terminal (see ``waiter.lifecycle``), recording
``status`` and ``failure_message`` as outputs. ``WaitForEcsDeployment`` wraps
it and fails the run with the failure message whenever the status is not
COMPLETED. Removing the resource never touches the ECS service.

Typical use, after the resources that trigger a new deployment::

    WaitForEcsDeployment(
        "api-rollout",
        EcsWaiterArgs(cluster=cluster.name, service=service.name),
        opts=pulumi.ResourceOptions(depends_on=[service]),
    )
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

import pulumi
import pulumi.dynamic

from waiter.lifecycle import WaiterLifecycle
from waiter.models import WaiterPhase

ID: str = "staticsite:ecs:WaitForEcsDeployment"


@dataclass
class EcsWaiterArgs:
    """
    Attributes:
        cluster: ECS cluster name or ARN.
        service: ECS service name or ARN.
        deployment_id: Deployment expected to become primary; the current
            primary deployment is watched when omitted.
        region: AWS region of the cluster; defaults to the ambient region.
        poll_interval: Seconds before the second poll.
        timeout: Seconds before the wait gives up.
        backoff_multiplier: Growth factor of the poll interval.
        max_interval: Upper bound of the poll interval in seconds.
        max_transient_errors: Consecutive failed reads tolerated.
    """

    cluster: pulumi.Input[str]
    service: pulumi.Input[str]
    deployment_id: pulumi.Input[str] | None = None
    region: pulumi.Input[str] | None = None
    poll_interval: pulumi.Input[float] | None = None
    timeout: pulumi.Input[float] | None = None
    backoff_multiplier: pulumi.Input[float] | None = None
    max_interval: pulumi.Input[float] | None = None
    max_transient_errors: pulumi.Input[int] | None = None


class PulumiLogHandler(logging.Handler):
    """Forwards ``waiter`` log records to the Pulumi engine's diagnostics."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if record.levelno >= logging.ERROR:
                pulumi.log.error(message)
            elif record.levelno >= logging.WARNING:
                pulumi.log.warn(message)
            else:
                pulumi.log.info(message)
        except Exception:
            self.handleError(record)


class EcsWaiterProvider(pulumi.dynamic.ResourceProvider):
    """Maps the dynamic provider protocol onto ``WaiterLifecycle``."""

    def __init__(self, lifecycle: WaiterLifecycle | None = None):
        self._lifecycle = lifecycle or WaiterLifecycle()

    def _wait(self, props: dict[str, Any]) -> dict[str, Any]:
        # Dynamic providers run out of process; only pulumi.log reaches the CLI.
        waiter_logger = logging.getLogger("waiter")
        handler = PulumiLogHandler(logging.INFO)
        waiter_logger.addHandler(handler)
        previous_level = waiter_logger.level
        if waiter_logger.getEffectiveLevel() > logging.INFO:
            waiter_logger.setLevel(logging.INFO)
        try:
            result = self._lifecycle.begin_wait(props)
        finally:
            waiter_logger.removeHandler(handler)
            waiter_logger.setLevel(previous_level)
        return {**props, **result.to_outputs()}

    def create(self, props: dict[str, Any]) -> pulumi.dynamic.CreateResult:
        outs = self._wait(props)
        return pulumi.dynamic.CreateResult(
            id_=f"{props['cluster']}/{props['service']}/{uuid.uuid4().hex}",
            outs=outs,
        )

    def diff(
        self, _id: str, olds: dict[str, Any], news: dict[str, Any]
    ) -> pulumi.dynamic.DiffResult:
        return pulumi.dynamic.DiffResult(
            changes=self._lifecycle.needs_wait(olds, news),
            replaces=[],
            delete_before_replace=False,
        )

    def update(
        self, _id: str, olds: dict[str, Any], news: dict[str, Any]
    ) -> pulumi.dynamic.UpdateResult:
        return pulumi.dynamic.UpdateResult(outs=self._wait(news))

    def delete(self, _id: str, props: dict[str, Any]) -> None:
        self._lifecycle.on_removal(props)


class EcsWaiter(pulumi.dynamic.Resource):
    status: pulumi.Output[str]
    failure_message: pulumi.Output[str | None]

    def __init__(
        self,
        name: str,
        args: EcsWaiterArgs,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__(
            EcsWaiterProvider(),
            name,
            {**vars(args), "status": None, "failure_message": None},
            opts,
        )


def check_wait_outputs(status: str, failure_message: str | None) -> str:
    """Return ``status`` if COMPLETED, otherwise fail the Pulumi run."""
    if status != WaiterPhase.COMPLETED.value:
        raise pulumi.RunError(f"ECS deployment failed: {failure_message}")
    return status


class WaitForEcsDeployment(pulumi.ComponentResource):
    """
    Blocks the deployment until the ECS rollout completes.

    Resources: EcsWaiter.
    """

    def __init__(
        self,
        name: str,
        args: EcsWaiterArgs,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Args:
            name: Pulumi resource name.
            args: Deployment reference and wait budget.
            opts: Component resource options; use ``depends_on`` to start the
                wait after the resources that trigger the deployment.

        Outputs (set on self, registered for the component):
            status: Always "COMPLETED" once resolved; any other outcome fails
                the run with the waiter's failure message.
            failure_message: Message recorded by the waiter, if any.
        """
        super().__init__(ID, name, None, opts)

        waiter = EcsWaiter(name, args, pulumi.ResourceOptions(parent=self))

        self.failure_message: pulumi.Output[str | None] = waiter.failure_message
        self.status: pulumi.Output[str] = pulumi.Output.all(
            waiter.status, waiter.failure_message
        ).apply(lambda args: self._check(args[0], args[1]))
        self.register_outputs(
            {"status": self.status, "failure_message": self.failure_message}
        )

    def _check(self, status: str, failure_message: str | None) -> str:
        if status != WaiterPhase.COMPLETED.value:
            pulumi.log.error(
                f"ECS deployment ended {status}: {failure_message}", resource=self
            )
        return check_wait_outputs(status, failure_message)
