"""Bitbucket Git provider manifest."""

from promotion_harness.providers.bitbucket.config import BitbucketConfig
from promotion_harness.providers.bitbucket.provider import BitbucketProvider
from promotion_harness.providers.manifest import ProviderManifest

bitbucket_manifest = ProviderManifest(
    config_cls=BitbucketConfig,
    provider_factory=BitbucketProvider.from_config,
    secret_name="tssc-bitbucket-integration",
)
