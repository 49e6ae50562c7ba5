"""Bitbucket Git provider module."""

from promotion_harness.providers.bitbucket.config import BitbucketConfig
from promotion_harness.providers.bitbucket.manifest import bitbucket_manifest
from promotion_harness.providers.bitbucket.provider import BitbucketProvider

__all__ = ["BitbucketConfig", "BitbucketProvider", "bitbucket_manifest"]
