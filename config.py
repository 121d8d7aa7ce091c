"""
Stack configuration loaded from pulumi.Config().

Provides a typed, immutable view of stack settings. All settings are read from
Pulumi config (e.g. Pulumi.<stack>.yaml or pulumi config set). Site keys are
required; ECS waiter keys are optional and fall back to the waiter defaults.
Used by __main__.main() to name and tag resources, build the static site and,
when an ECS cluster and service are configured, gate the run on their
deployment.
"""

from dataclasses import dataclass
from typing import Any, Callable

import pulumi

from waiter.models import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_INTERVAL,
    DEFAULT_MAX_TRANSIENT_ERRORS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TIMEOUT,
)


def _require_str(config: pulumi.Config, key: str) -> str:
    return config.require(key)


def _optional_str(config: pulumi.Config, key: str) -> str | None:
    return config.get(key) or None


def _optional_bool(default: bool) -> Callable[[pulumi.Config, str], bool]:
    def parse(config: pulumi.Config, key: str) -> bool:
        raw = config.get(key)
        if raw is None:
            return default
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("1", "true", "yes")

    return parse


def _optional_float(default: float) -> Callable[[pulumi.Config, str], float]:
    def parse(config: pulumi.Config, key: str) -> float:
        raw = config.get(key)
        return default if raw is None else float(raw)

    return parse


def _optional_int(default: int) -> Callable[[pulumi.Config, str], int]:
    def parse(config: pulumi.Config, key: str) -> int:
        raw = config.get(key)
        return default if raw is None else int(raw)

    return parse


def _default_str(default: str) -> Callable[[pulumi.Config, str], str]:
    def parse(config: pulumi.Config, key: str) -> str:
        return config.get(key) or default

    return parse


# (key, parser); parser receives (config, key) and returns value.
_CONFIG_SPEC: list[tuple[str, Callable[[pulumi.Config, str], Any]]] = [
    ("project_name", _require_str),
    ("environment", _require_str),
    ("primary_domain", _require_str),
    ("primary_hostname", _require_str),
    ("price_class", _default_str("PriceClass_100")),
    ("force_destroy_bucket", _optional_bool(False)),
    ("aws_region", _optional_str),
    ("ecs_cluster", _optional_str),
    ("ecs_service", _optional_str),
    ("ecs_deployment_id", _optional_str),
    ("waiter_poll_interval", _optional_float(DEFAULT_POLL_INTERVAL)),
    ("waiter_timeout", _optional_float(DEFAULT_TIMEOUT)),
    ("waiter_backoff_multiplier", _optional_float(DEFAULT_BACKOFF_MULTIPLIER)),
    ("waiter_max_interval", _optional_float(DEFAULT_MAX_INTERVAL)),
    ("waiter_max_transient_errors", _optional_int(DEFAULT_MAX_TRANSIENT_ERRORS)),
]


@dataclass(frozen=True)
class StackConfig:
    """
    Stack configuration from Pulumi config.

    Attributes:
        project_name: Project name used in resource naming and tags (required).
        environment: Environment label used in resource naming and tags (required).
        primary_domain: Route 53 hosted zone domain (required).
        primary_hostname: Hostname the site is served on (required).
        price_class: CloudFront price class (default PriceClass_100).
        force_destroy_bucket: Empty the bucket on destroy (default False).
        aws_region: Region of the ECS cluster; ambient region when unset.
        ecs_cluster: ECS cluster to watch; the waiter is skipped when unset.
        ecs_service: ECS service to watch; the waiter is skipped when unset.
        ecs_deployment_id: Deployment expected to become primary (optional).
        waiter_poll_interval: Seconds before the second poll (default 5).
        waiter_timeout: Seconds before the wait gives up (default 900).
        waiter_backoff_multiplier: Poll interval growth factor (default 1.5).
        waiter_max_interval: Poll interval cap in seconds (default 30).
        waiter_max_transient_errors: Consecutive failed reads tolerated
            (default 5).
    """

    project_name: str
    environment: str
    primary_domain: str
    primary_hostname: str
    price_class: str
    force_destroy_bucket: bool
    aws_region: str | None
    ecs_cluster: str | None
    ecs_service: str | None
    ecs_deployment_id: str | None
    waiter_poll_interval: float
    waiter_timeout: float
    waiter_backoff_multiplier: float
    waiter_max_interval: float
    waiter_max_transient_errors: int

    @property
    def waits_for_ecs(self) -> bool:
        return bool(self.ecs_cluster and self.ecs_service)

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config) -> "StackConfig":
        """
        Build StackConfig from pulumi.Config(). Keys parsed by _require_str are
        required; the rest fall back to their defaults.
        """
        kwargs = {key: parser(config, key) for key, parser in _CONFIG_SPEC}
        return cls(**kwargs)
