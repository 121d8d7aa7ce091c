"""
Static website: certificate, S3 website bucket, CloudFront and Route 53.

Composition only. The order matters because each step consumes outputs of
the previous ones:

1. Look up the hosted zone of ``primary_domain``.
2. Issue an ACM certificate for ``primary_hostname`` in us-east-1 (the only
   region CloudFront reads certificates from) and validate it through DNS.
3. Generate the Referer secret shared by the CDN and the bucket policy.
4. Create the website bucket, then the distribution in front of it.
5. Point A and AAAA alias records for the hostname at the distribution.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws
import pulumi_random as random

from components._helpers import GetTags, site_url, validation_option_for
from components.bucket import BucketOptions, WebsiteBucket
from components.distribution import DistributionOptions, StaticDistribution

ID: str = "staticsite:aws:StaticSite"

CERTIFICATE_REGION = "us-east-1"
REFERER_SECRET_LENGTH = 32
VALIDATION_RECORD_TTL = 60


@dataclass
class StaticSiteOptions:
    """
    Knobs that only affect how resources are registered, not what they are.

    Attributes:
        provider_us_east_1: Existing us-east-1 AWS provider for the
            certificate; one is created when omitted.
        distribution_ignore_changes: Distribution properties not to diff.
        dns_a_record_aliases: Aliases for the A record (e.g. after a rename).
        dns_aaaa_record_aliases: Aliases for the AAAA record.
    """

    provider_us_east_1: pulumi.ProviderResource | None = None
    distribution_ignore_changes: list[str] | None = None
    dns_a_record_aliases: list[pulumi.Input[pulumi.Alias]] | None = None
    dns_aaaa_record_aliases: list[pulumi.Input[pulumi.Alias]] | None = None


class StaticSite(pulumi.ComponentResource):
    """
    HTTPS static website on a custom hostname.

    Resources: ACM Certificate + validation record + CertificateValidation,
    RandomPassword, WebsiteBucket, StaticDistribution, A and AAAA records.
    """

    def __init__(
        self,
        name: str,
        primary_domain: pulumi.Input[str],
        primary_hostname: pulumi.Input[str],
        get_tags: GetTags,
        distribution_options: DistributionOptions | None = None,
        bucket_options: BucketOptions | None = None,
        site_options: StaticSiteOptions | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the certificate, bucket, distribution and DNS records.

        Args:
            name: Pulumi resource name prefix for every child resource.
            primary_domain: Domain of the Route 53 hosted zone (e.g.
                "example.com").
            primary_hostname: Hostname the site is served on (e.g.
                "www.example.com"); must be inside ``primary_domain``.
            get_tags: Returns the tags for a resource name.
            distribution_options: CloudFront cache and edge settings.
            bucket_options: S3 website documents and destroy behaviour.
            site_options: Provider, ignore_changes and alias settings.
            opts: Component resource options.

        Outputs (set on self, registered for the component):
            primary_bucket: The S3 bucket holding the site.
            primary_distribution: The CloudFront distribution.
            url: HTTPS URL of the site.
        """
        super().__init__(ID, name, None, opts)

        site_options = site_options or StaticSiteOptions()
        child_opts = pulumi.ResourceOptions(parent=self)

        zone_id = pulumi.Output.from_input(primary_domain).apply(self._lookup_zone_id)

        provider_us_east_1 = site_options.provider_us_east_1 or aws.Provider(
            resource_name=f"{name}-aws-provider-{CERTIFICATE_REGION}",
            region=CERTIFICATE_REGION,
            opts=child_opts,
        )
        cert_opts = pulumi.ResourceOptions(parent=self, provider=provider_us_east_1)

        cert = aws.acm.Certificate(
            resource_name=f"{name}-cert",
            domain_name=primary_hostname,
            validation_method="DNS",
            tags=get_tags(f"{name}-cert"),
            opts=cert_opts,
        )

        option = pulumi.Output.all(cert.domain_validation_options, primary_hostname).apply(
            lambda args: validation_option_for(args[0], args[1])
        )
        validation_record = aws.route53.Record(
            resource_name=f"{name}-cert-validation",
            zone_id=zone_id,
            name=option.apply(lambda o: o.resource_record_name),
            type=option.apply(lambda o: o.resource_record_type),
            records=[option.apply(lambda o: o.resource_record_value)],
            ttl=VALIDATION_RECORD_TTL,
            allow_overwrite=True,
            opts=child_opts,
        )
        validation = aws.acm.CertificateValidation(
            resource_name=f"{name}-cert",
            certificate_arn=cert.arn,
            validation_record_fqdns=[validation_record.fqdn],
            opts=cert_opts,
        )

        referer_secret = random.RandomPassword(
            resource_name=f"{name}-referer-secret",
            length=REFERER_SECRET_LENGTH,
            numeric=True,
            special=False,
            opts=child_opts,
        )

        website_bucket = WebsiteBucket(
            name=f"{name}-primary",
            get_tags=get_tags,
            referer_value=referer_secret.result,
            options=bucket_options,
            opts=child_opts,
        )
        self.primary_bucket: aws.s3.Bucket = website_bucket.bucket

        distribution = StaticDistribution(
            name=f"{name}-primary",
            domains=[primary_hostname],
            origin_domain_name=website_bucket.website_endpoint,
            acm_certificate_arn=validation.certificate_arn,
            referer_value=referer_secret.result,
            get_tags=get_tags,
            options=distribution_options,
            ignore_changes=site_options.distribution_ignore_changes,
            opts=child_opts,
        )
        self.primary_distribution: aws.cloudfront.Distribution = distribution.distribution

        # IPv4 and IPv6 aliases to the same distribution.
        for record_type, aliases in (
            ("A", site_options.dns_a_record_aliases),
            ("AAAA", site_options.dns_aaaa_record_aliases),
        ):
            aws.route53.Record(
                resource_name=f"{name}-primary-dns-{record_type}",
                zone_id=zone_id,
                name=primary_hostname,
                type=record_type,
                aliases=[
                    aws.route53.RecordAliasArgs(
                        name=distribution.domain_name,
                        zone_id=distribution.hosted_zone_id,
                        evaluate_target_health=False,
                    )
                ],
                opts=pulumi.ResourceOptions(parent=self, aliases=aliases),
            )

        self.url: pulumi.Output[str] = pulumi.Output.from_input(primary_hostname).apply(
            site_url
        )
        self.register_outputs(
            {
                "primary_bucket": self.primary_bucket.id,
                "primary_distribution": self.primary_distribution.id,
                "url": self.url,
            }
        )

    def _lookup_zone_id(self, domain: str) -> str:
        try:
            zone = aws.route53.get_zone(
                name=domain,
                opts=pulumi.InvokeOptions(parent=self),
            )
        except Exception as exc:
            raise pulumi.RunError(
                f"unable to get zone id for domain {domain}: {exc}"
            ) from exc
        return zone.zone_id
