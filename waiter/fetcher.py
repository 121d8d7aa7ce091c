"""
Status Fetcher: one ``DescribeServices`` read per call.

Turns the ECS response into a ``DeploymentRecord`` and sorts failures into
``ConfigurationError`` (missing cluster or service, bad credentials or any
other 4xx; retrying will not help) and ``TransientObservationError``
(throttling, 5xx, network).
Parsing is lenient: fields the API left out become ``None`` and the
classifier decides what an incomplete record means.
"""

import logging
from typing import Any, Mapping, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)

from waiter.errors import ConfigurationError, TransientObservationError
from waiter.models import (
    DeploymentRecord,
    DeploymentReference,
    DeploymentSummary,
    ServiceEvent,
)

logger = logging.getLogger(__name__)

TRANSIENT_ERROR_CODES: frozenset[str] = frozenset(
    {
        "ThrottlingException",
        "Throttling",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "ServerException",
        "ServiceUnavailableException",
        "ServiceUnavailable",
        "InternalFailure",
    }
)

# Our own loop does the retrying; botocore only gets one extra attempt so a
# single fetch stays short.
CLIENT_CONFIG = Config(
    connect_timeout=5,
    read_timeout=10,
    retries={"max_attempts": 2, "mode": "standard"},
)


class StatusFetcher(Protocol):
    def fetch(self, reference: DeploymentReference) -> DeploymentRecord: ...


def _int_or_none(value: Any) -> int | None:
    return value if isinstance(value, int) else None


def parse_deployment(raw: Mapping[str, Any]) -> DeploymentSummary:
    return DeploymentSummary(
        id=raw.get("id", ""),
        status=raw.get("status"),
        task_definition=raw.get("taskDefinition"),
        desired_count=_int_or_none(raw.get("desiredCount")),
        running_count=_int_or_none(raw.get("runningCount")),
        pending_count=_int_or_none(raw.get("pendingCount")),
        failed_tasks=_int_or_none(raw.get("failedTasks")),
        rollout_state=raw.get("rolloutState"),
        rollout_state_reason=raw.get("rolloutStateReason"),
        created_at=raw.get("createdAt"),
        updated_at=raw.get("updatedAt"),
    )


def parse_event(raw: Mapping[str, Any]) -> ServiceEvent:
    return ServiceEvent(
        id=raw.get("id"),
        created_at=raw.get("createdAt"),
        message=raw.get("message", ""),
    )


def parse_service(raw: Mapping[str, Any]) -> DeploymentRecord:
    """Build a record from one element of ``DescribeServices``' ``services``."""
    return DeploymentRecord(
        service_name=raw.get("serviceName", ""),
        service_status=raw.get("status"),
        deployments=tuple(parse_deployment(d) for d in raw.get("deployments", [])),
        events=tuple(parse_event(e) for e in raw.get("events", [])),
    )


class EcsStatusFetcher:
    """
    Reads the deployment state of an ECS service.

    Args:
        region: AWS region for the ECS client; the default boto3 resolution
            chain applies when omitted.
        client: Pre-built ECS client, mainly for tests.
    """

    def __init__(self, region: str | None = None, client=None):
        self._region = region
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "ecs", region_name=self._region, config=CLIENT_CONFIG
            )
        return self._client

    def fetch(self, reference: DeploymentReference) -> DeploymentRecord:
        try:
            response = self.client.describe_services(
                cluster=reference.cluster,
                services=[reference.service],
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
            if code in TRANSIENT_ERROR_CODES or status >= 500:
                raise TransientObservationError(str(exc)) from exc
            # Every other 4xx (not found, access denied, expired token, generic
            # ClientException) will fail the same way on the next read.
            raise ConfigurationError(
                f"cannot describe service {reference.service} in cluster "
                f"{reference.cluster}: {exc}"
            ) from exc
        except (BotoConnectionError, HTTPClientError) as exc:
            raise TransientObservationError(str(exc)) from exc
        except BotoCoreError as exc:
            # Credential and parameter validation errors are not transient.
            raise ConfigurationError(str(exc)) from exc

        failures = response.get("failures", [])
        if failures:
            reason = failures[0].get("reason", "unknown")
            raise ConfigurationError(
                f"service {reference.service} not found in cluster "
                f"{reference.cluster}: {reason}"
            )

        services = response.get("services", [])
        if not services:
            raise TransientObservationError(
                f"empty DescribeServices response for {reference}"
            )
        record = parse_service(services[0])
        if record.service_status == "INACTIVE":
            raise ConfigurationError(
                f"service {reference.service} in cluster {reference.cluster} "
                "is INACTIVE"
            )
        logger.debug(
            "Fetched %s: %d deployment(s), %d event(s)",
            reference,
            len(record.deployments),
            len(record.events),
        )
        return record
