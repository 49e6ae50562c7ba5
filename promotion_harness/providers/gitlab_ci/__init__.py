"""GitLab CI provider module."""

from promotion_harness.providers.gitlab_ci.config import GitLabCIConfig
from promotion_harness.providers.gitlab_ci.manifest import gitlab_ci_manifest
from promotion_harness.providers.gitlab_ci.provider import GitLabCIProvider

__all__ = ["GitLabCIConfig", "GitLabCIProvider", "gitlab_ci_manifest"]
