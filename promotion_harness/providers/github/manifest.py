"""GitHub Git provider manifest."""

from promotion_harness.providers.github.config import GitHubConfig
from promotion_harness.providers.github.provider import GitHubProvider
from promotion_harness.providers.manifest import ProviderManifest

github_manifest = ProviderManifest(
    config_cls=GitHubConfig,
    provider_factory=GitHubProvider.from_config,
    secret_name="tssc-github-integration",
)
