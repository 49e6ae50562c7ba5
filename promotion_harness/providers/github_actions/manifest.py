"""GitHub Actions provider manifest."""

from promotion_harness.providers.github_actions.config import GitHubActionsConfig
from promotion_harness.providers.github_actions.provider import GitHubActionsProvider
from promotion_harness.providers.manifest import ProviderManifest

github_actions_manifest = ProviderManifest(
    config_cls=GitHubActionsConfig,
    provider_factory=GitHubActionsProvider.from_config,
    secret_name="tssc-github-integration",
)
