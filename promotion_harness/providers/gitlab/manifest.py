"""GitLab Git provider manifest."""

from promotion_harness.providers.gitlab.config import GitLabConfig
from promotion_harness.providers.gitlab.provider import GitLabProvider
from promotion_harness.providers.manifest import ProviderManifest

gitlab_manifest = ProviderManifest(
    config_cls=GitLabConfig,
    provider_factory=GitLabProvider.from_config,
    secret_name="tssc-gitlab-integration",
)
