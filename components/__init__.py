"""
Infrastructure components.

Each concern is encapsulated in its own ComponentResource for clear
ownership, testability, and reuse. Use from the Pulumi entrypoint (e.g.
__main__.py) with config and output chaining:

- **StaticSite**: certificate, bucket, CDN and DNS for one HTTPS hostname;
  built from **WebsiteBucket** and **StaticDistribution**.
- **WaitForEcsDeployment**: blocks the run until an ECS deployment is
  terminal and fails it unless the deployment completed.
"""

from components.bucket import BucketOptions, WebsiteBucket
from components.distribution import DistributionOptions, StaticDistribution
from components.ecs_deployment import EcsWaiter, EcsWaiterArgs, WaitForEcsDeployment
from components.static_site import StaticSite, StaticSiteOptions

__all__ = [
    "BucketOptions",
    "DistributionOptions",
    "EcsWaiter",
    "EcsWaiterArgs",
    "StaticDistribution",
    "StaticSite",
    "StaticSiteOptions",
    "WaitForEcsDeployment",
    "WebsiteBucket",
]
