"""GitLab CI provider manifest."""

from promotion_harness.providers.gitlab_ci.config import GitLabCIConfig
from promotion_harness.providers.gitlab_ci.provider import GitLabCIProvider
from promotion_harness.providers.manifest import ProviderManifest

gitlab_ci_manifest = ProviderManifest(
    config_cls=GitLabCIConfig,
    provider_factory=GitLabCIProvider.from_config,
    secret_name="tssc-gitlab-integration",
)
