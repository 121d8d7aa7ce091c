"""
Pure helpers for tagging, bucket policy and certificate validation. Testable
without Pulumi runtime.

Used by the static site components (make_get_tags, referer_bucket_policy,
validation_option_for) and the program entrypoint (site_url). No Pulumi
types; all functions accept and return plain Python types so they can be
unit-tested without a Pulumi stack.
"""

import json
from typing import Any, Callable, Iterable

GetTags = Callable[[str], dict[str, str]]


def make_get_tags(
    project_name: str,
    environment: str,
    extra: dict[str, str] | None = None,
) -> GetTags:
    """
    Return a ``get_tags(name)`` callable for the StaticSite component.

    Every resource gets Project, Environment and a Name tag set to the
    resource's Pulumi name; ``extra`` tags are merged in last.
    """

    def get_tags(name: str) -> dict[str, str]:
        return {
            "Name": name,
            "Project": project_name,
            "Environment": environment,
            **(extra or {}),
        }

    return get_tags


def referer_bucket_policy(
    bucket_arn: str,
    referer: str,
) -> str:
    """
    Bucket policy JSON allowing s3:GetObject only with a matching Referer.

    S3 website endpoints cannot use Origin Access Control, so CloudFront
    sends a secret Referer header and the bucket only serves requests that
    carry it.
    """
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "AllowCloudFrontReferer",
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": "s3:GetObject",
                    "Resource": f"{bucket_arn}/*",
                    "Condition": {"StringEquals": {"aws:Referer": referer}},
                }
            ],
        }
    )


def validation_option_for(
    options: Iterable[Any],
    domain: str,
) -> Any:
    """
    Pick the ACM DNS validation option for ``domain``.

    Args:
        options: Certificate ``domain_validation_options`` entries (objects
            with ``domain_name``, ``resource_record_name``, ...).
        domain: The hostname being validated.

    Raises:
        ValueError: No option matches ``domain``.
    """
    normalized = domain.rstrip(".").lower()
    for option in options:
        if option.domain_name.rstrip(".").lower() == normalized:
            return option
    raise ValueError(f"no DNS validation option for {domain}")


def site_url(
    hostname: str,
) -> str:
    return f"https://{hostname.rstrip('.')}"
