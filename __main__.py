"""
Static site with an optional ECS deployment gate - IaC entrypoint.

Wires two ComponentResources using Pulumi config and output chaining:

- **StaticSite**: ACM certificate (us-east-1, DNS validated), S3 website
  bucket behind CloudFront with a secret Referer header, and Route 53 A/AAAA
  alias records for the primary hostname.
- **WaitForEcsDeployment**: when ``ecs_cluster`` and ``ecs_service`` are
  configured, blocks the run until the service's deployment is terminal and
  fails it with the waiter's message unless the deployment completed.

Stack exports: site_url, bucket_name, distribution_id, and
ecs_deployment_status when the waiter is enabled.
"""

import pulumi

from components import (
    BucketOptions,
    DistributionOptions,
    EcsWaiterArgs,
    StaticSite,
    WaitForEcsDeployment,
)
from components._helpers import make_get_tags
from config import StackConfig


def _component_name(project_name: str, environment: str, prefix: str) -> str:
    return f"{prefix}-{project_name}-{environment}"


def main():
    """
    Build the static site and, if configured, the ECS deployment gate.

    Reads config, instantiates StaticSite with tags derived from the project
    and environment, adds WaitForEcsDeployment when a cluster and service are
    configured, and exports the site URL and resource ids.
    """
    config = StackConfig.from_pulumi_config(pulumi.Config())

    def name(prefix: str) -> str:
        return _component_name(config.project_name, config.environment, prefix)

    site = StaticSite(
        name=name("site"),
        primary_domain=config.primary_domain,
        primary_hostname=config.primary_hostname,
        get_tags=make_get_tags(config.project_name, config.environment),
        distribution_options=DistributionOptions(price_class=config.price_class),
        bucket_options=BucketOptions(force_destroy=config.force_destroy_bucket),
    )

    for output_name, value in [
        ("site_url", site.url),
        ("bucket_name", site.primary_bucket.id),
        ("distribution_id", site.primary_distribution.id),
    ]:
        pulumi.export(output_name, value)

    if config.waits_for_ecs:
        rollout = WaitForEcsDeployment(
            name=name("ecs-rollout"),
            args=EcsWaiterArgs(
                cluster=config.ecs_cluster,
                service=config.ecs_service,
                deployment_id=config.ecs_deployment_id,
                region=config.aws_region,
                poll_interval=config.waiter_poll_interval,
                timeout=config.waiter_timeout,
                backoff_multiplier=config.waiter_backoff_multiplier,
                max_interval=config.waiter_max_interval,
                max_transient_errors=config.waiter_max_transient_errors,
            ),
        )
        pulumi.export("ecs_deployment_status", rollout.status)


if __name__ == "__main__":
    main()
