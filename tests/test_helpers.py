"""Tests for pure helpers"""

import json
from types import SimpleNamespace

import pytest

from components import _helpers


class TestMakeGetTags:
    def test_sets_name_project_and_environment(self):
        get_tags = _helpers.make_get_tags("shop", "dev")
        assert get_tags("site-cert") == {
            "Name": "site-cert",
            "Project": "shop",
            "Environment": "dev",
        }

    def test_extra_tags_are_merged_last(self):
        get_tags = _helpers.make_get_tags("shop", "dev", {"Environment": "qa", "Team": "web"})
        tags = get_tags("bucket")
        assert tags["Environment"] == "qa"
        assert tags["Team"] == "web"


class TestRefererBucketPolicy:
    def test_allows_get_object_with_referer(self):
        policy = json.loads(
            _helpers.referer_bucket_policy("arn:aws:s3:::site-bucket", "s3cr3t")
        )
        statement = policy["Statement"][0]
        assert statement["Action"] == "s3:GetObject"
        assert statement["Resource"] == "arn:aws:s3:::site-bucket/*"
        assert statement["Condition"] == {"StringEquals": {"aws:Referer": "s3cr3t"}}


class TestValidationOptionFor:
    options = [
        SimpleNamespace(domain_name="example.com", resource_record_name="_a.example.com."),
        SimpleNamespace(domain_name="www.example.com", resource_record_name="_b.www.example.com."),
    ]

    def test_picks_matching_domain(self):
        option = _helpers.validation_option_for(self.options, "www.example.com")
        assert option.resource_record_name == "_b.www.example.com."

    def test_ignores_case_and_trailing_dot(self):
        option = _helpers.validation_option_for(self.options, "WWW.example.com.")
        assert option.domain_name == "www.example.com"

    def test_raises_when_missing(self):
        with pytest.raises(ValueError):
            _helpers.validation_option_for(self.options, "api.example.com")


class TestSiteUrl:
    def test_builds_https_url(self):
        assert _helpers.site_url("www.example.com") == "https://www.example.com"

    def test_strips_trailing_dot(self):
        assert _helpers.site_url("www.example.com.") == "https://www.example.com"
