"""
CloudFront distribution in front of an S3 website endpoint.

S3 website endpoints only speak HTTP, so the origin is a custom origin with
``http-only`` and the secret ``Referer`` header the bucket policy checks.
Viewers are redirected to HTTPS and served the ACM certificate for the
site's hostnames via SNI. Outputs (``domain_name``, ``hosted_zone_id``) are
``Output[str]`` so Route 53 alias records can point at the distribution.
"""

from dataclasses import dataclass, field

import pulumi
import pulumi_aws as aws

from components._helpers import GetTags

ID: str = "staticsite:aws:StaticDistribution"

ORIGIN_ID = "s3-website"


@dataclass(frozen=True)
class DistributionOptions:
    """
    Attributes:
        price_class: CloudFront price class (edge location coverage).
        default_ttl: Default cache TTL in seconds.
        min_ttl: Minimum cache TTL in seconds.
        max_ttl: Maximum cache TTL in seconds.
        http_version: Highest HTTP version offered to viewers.
        comment: Free-text comment shown in the CloudFront console.
        web_acl_id: Optional WAF web ACL ARN.
        geo_restriction_locations: ISO country codes to allow; empty means
            no restriction.
    """

    price_class: str = "PriceClass_100"
    default_ttl: int = 3600
    min_ttl: int = 0
    max_ttl: int = 86400
    http_version: str = "http2and3"
    comment: str | None = None
    web_acl_id: str | None = None
    geo_restriction_locations: list[str] = field(default_factory=list)


class StaticDistribution(pulumi.ComponentResource):
    """
    CloudFront distribution (custom S3 website origin, HTTPS, ACM cert).

    Resources: Distribution.
    """

    def __init__(
        self,
        name: str,
        domains: list[pulumi.Input[str]],
        origin_domain_name: pulumi.Input[str],
        acm_certificate_arn: pulumi.Input[str],
        referer_value: pulumi.Input[str],
        get_tags: GetTags,
        options: DistributionOptions | None = None,
        ignore_changes: list[str] | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the CloudFront distribution.

        Args:
            name: Pulumi resource name for the distribution.
            domains: Alternate domain names (CNAMEs) served by the distribution.
            origin_domain_name: S3 website endpoint host.
            acm_certificate_arn: Validated certificate in us-east-1.
            referer_value: Secret sent to the origin as Referer header.
            get_tags: Returns the tags for a resource name.
            options: Cache and edge settings.
            ignore_changes: Distribution properties Pulumi should not diff.
            opts: Component resource options (e.g. parent).

        Outputs (set on self, registered for the component):
            domain_name: Distribution FQDN (alias record target).
            hosted_zone_id: Route53 hosted zone ID for alias records.
        """
        super().__init__(ID, name, None, opts)

        options = options or DistributionOptions()

        origins = [
            aws.cloudfront.DistributionOriginArgs(
                domain_name=origin_domain_name,
                origin_id=ORIGIN_ID,
                custom_origin_config=aws.cloudfront.DistributionOriginCustomOriginConfigArgs(
                    http_port=80,
                    https_port=443,
                    origin_protocol_policy="http-only",
                    origin_ssl_protocols=["TLSv1.2"],
                ),
                custom_headers=[
                    aws.cloudfront.DistributionOriginCustomHeaderArgs(
                        name="Referer",
                        value=referer_value,
                    )
                ],
            )
        ]

        # ForwardedValues is required by the API when not using a cache policy.
        forwarded_values = aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesArgs(
            query_string=False,
            cookies=aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesCookiesArgs(
                forward="none",
            ),
        )
        default_cache_behavior = aws.cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=ORIGIN_ID,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            cached_methods=["GET", "HEAD"],
            compress=True,
            forwarded_values=forwarded_values,
            default_ttl=options.default_ttl,
            min_ttl=options.min_ttl,
            max_ttl=options.max_ttl,
        )

        if options.geo_restriction_locations:
            geo_restriction = aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="whitelist",
                locations=options.geo_restriction_locations,
            )
        else:
            geo_restriction = aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            )

        viewer_certificate = aws.cloudfront.DistributionViewerCertificateArgs(
            acm_certificate_arn=acm_certificate_arn,
            ssl_support_method="sni-only",
            minimum_protocol_version="TLSv1.2_2021",
        )

        self.distribution = aws.cloudfront.Distribution(
            resource_name=name,
            enabled=True,
            is_ipv6_enabled=True,
            aliases=domains,
            comment=options.comment,
            price_class=options.price_class,
            http_version=options.http_version,
            web_acl_id=options.web_acl_id,
            origins=origins,
            default_cache_behavior=default_cache_behavior,
            restrictions=aws.cloudfront.DistributionRestrictionsArgs(
                geo_restriction=geo_restriction,
            ),
            viewer_certificate=viewer_certificate,
            tags=get_tags(name),
            opts=pulumi.ResourceOptions(parent=self, ignore_changes=ignore_changes),
        )

        self.domain_name: pulumi.Output[str] = self.distribution.domain_name
        self.hosted_zone_id: pulumi.Output[str] = self.distribution.hosted_zone_id
        self.register_outputs(
            {
                "domain_name": self.domain_name,
                "hosted_zone_id": self.hosted_zone_id,
            }
        )
