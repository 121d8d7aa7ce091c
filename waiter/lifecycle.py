"""
Engine-agnostic lifecycle of a deployment waiter resource.

A provisioning engine drives the waiter through three hooks:

- ``begin_wait``: on create or update, block until the deployment is
  terminal and return the result as the resource's outputs.
- ``is_terminal`` / ``needs_wait``: on diff, decide whether a recorded
  result still stands for the new inputs.
- ``on_removal``: on delete. Nothing is ever mutated, so this is a no-op.

Inputs and outputs are plain mappings so the hooks can be exercised without
any engine at all.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from waiter.fetcher import EcsStatusFetcher, StatusFetcher
from waiter.loop import DeploymentWaiter
from waiter.models import (
    DeploymentReference,
    WaitBudget,
    WaiterPhase,
    WaitResult,
)

logger = logging.getLogger(__name__)

REFERENCE_KEYS = ("cluster", "service", "deployment_id")
BUDGET_KEYS = (
    "poll_interval",
    "timeout",
    "backoff_multiplier",
    "max_interval",
    "max_transient_errors",
)
INPUT_KEYS = (*REFERENCE_KEYS, "region", *BUDGET_KEYS)


@dataclass(frozen=True)
class WaitInputs:
    reference: DeploymentReference
    budget: WaitBudget
    region: str | None = None

    @classmethod
    def from_mapping(cls, props: Mapping[str, Any]) -> "WaitInputs":
        """
        Parse engine properties. Unset budget keys keep ``WaitBudget`` defaults.

        Raises:
            ValueError: A required key is missing or a budget value is invalid.
        """
        reference = DeploymentReference(
            cluster=props.get("cluster") or "",
            service=props.get("service") or "",
            deployment_id=props.get("deployment_id") or None,
        )
        budget_kwargs = {
            key: props[key] for key in BUDGET_KEYS if props.get(key) is not None
        }
        if "max_transient_errors" in budget_kwargs:
            budget_kwargs["max_transient_errors"] = int(
                budget_kwargs["max_transient_errors"]
            )
        return cls(
            reference=reference,
            budget=WaitBudget(**budget_kwargs),
            region=props.get("region") or None,
        )


def _input_view(props: Mapping[str, Any]) -> dict[str, Any]:
    return {key: props.get(key) for key in INPUT_KEYS}


class WaiterLifecycle:
    """
    Args:
        fetcher_factory: Builds a fetcher for a region; defaults to
            ``EcsStatusFetcher``.
        waiter_factory: Builds the ``DeploymentWaiter`` around a fetcher.
    """

    def __init__(
        self,
        fetcher_factory: Callable[[str | None], StatusFetcher] = EcsStatusFetcher,
        waiter_factory: Callable[[StatusFetcher], DeploymentWaiter] = DeploymentWaiter,
    ):
        self._fetcher_factory = fetcher_factory
        self._waiter_factory = waiter_factory

    def begin_wait(self, props: Mapping[str, Any]) -> WaitResult:
        inputs = WaitInputs.from_mapping(props)
        waiter = self._waiter_factory(self._fetcher_factory(inputs.region))
        return waiter.wait(inputs.reference, inputs.budget)

    @staticmethod
    def is_terminal(outputs: Mapping[str, Any]) -> bool:
        status = outputs.get("status")
        if status is None:
            return False
        try:
            return WaiterPhase(status).is_terminal
        except ValueError:
            return False

    def needs_wait(self, olds: Mapping[str, Any], news: Mapping[str, Any]) -> bool:
        """
        True when a new wait is required: the inputs changed, or the recorded
        result is missing, not terminal, or not a success.
        """
        if _input_view(olds) != _input_view(news):
            return True
        if not self.is_terminal(olds):
            return True
        return olds.get("status") != WaiterPhase.COMPLETED.value

    @staticmethod
    def on_removal(outputs: Mapping[str, Any]) -> None:
        logger.debug(
            "Waiter for %s/%s removed; nothing to clean up",
            outputs.get("cluster"),
            outputs.get("service"),
        )
