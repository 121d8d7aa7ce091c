"""
S3 website bucket readable only through the CDN.

The bucket serves the site through its S3 website endpoint (so index and
error documents resolve per directory) and its policy only allows
``s3:GetObject`` when the request carries the secret ``Referer`` header that
the CloudFront origin adds. Public ACLs stay blocked; only the public bucket
policy is allowed, because the Referer condition is what gates access.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from components._helpers import GetTags, referer_bucket_policy

ID: str = "staticsite:aws:WebsiteBucket"

# Public ACLs are never needed; the bucket policy must stay allowed.
S3_REFERER_ONLY_ACCESS: dict[str, bool] = {
    "block_public_acls": True,
    "block_public_policy": False,
    "ignore_public_acls": True,
    "restrict_public_buckets": False,
}


@dataclass(frozen=True)
class BucketOptions:
    """
    Attributes:
        index_document: Object served for directory requests.
        error_document: Object served for 4xx responses.
        force_destroy: Delete all objects when the bucket is destroyed.
    """

    index_document: str = "index.html"
    error_document: str = "404.html"
    force_destroy: bool = False


class WebsiteBucket(pulumi.ComponentResource):
    """
    S3 bucket with website hosting and a Referer-gated bucket policy.

    Resources: Bucket, BucketPublicAccessBlock, BucketPolicy.
    """

    def __init__(
        self,
        name: str,
        get_tags: GetTags,
        referer_value: pulumi.Input[str],
        options: BucketOptions | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the bucket, its public access block and policy.

        Args:
            name: Pulumi resource name for the bucket and related resources.
            get_tags: Returns the tags for a resource name.
            referer_value: Secret the CDN sends as Referer header.
            options: Website documents and destroy behaviour.
            opts: Component resource options (e.g. parent).

        Outputs (set on self, registered for the component):
            bucket: The S3 bucket.
            website_endpoint: S3 website endpoint host (CDN origin).
        """
        super().__init__(ID, name, None, opts)

        options = options or BucketOptions()
        child_opts = pulumi.ResourceOptions(parent=self)

        self.bucket = aws.s3.Bucket(
            resource_name=name,
            website=aws.s3.BucketWebsiteArgs(
                index_document=options.index_document,
                error_document=options.error_document,
            ),
            force_destroy=options.force_destroy,
            tags=get_tags(name),
            opts=child_opts,
        )

        access_block = aws.s3.BucketPublicAccessBlock(
            resource_name=f"{name}-access",
            bucket=self.bucket.id,
            opts=child_opts,
            **S3_REFERER_ONLY_ACCESS,
        )

        # The policy is public by definition; S3 rejects it while the access
        # block still blocks public policies.
        aws.s3.BucketPolicy(
            resource_name=f"{name}-policy",
            bucket=self.bucket.id,
            policy=pulumi.Output.all(self.bucket.arn, referer_value).apply(
                lambda args: referer_bucket_policy(args[0], args[1])
            ),
            opts=pulumi.ResourceOptions(parent=self, depends_on=[access_block]),
        )

        self.website_endpoint: pulumi.Output[str] = self.bucket.website_endpoint
        self.register_outputs(
            {
                "bucket": self.bucket.id,
                "website_endpoint": self.website_endpoint,
            }
        )
