"""GitLab Git provider module."""

from promotion_harness.providers.gitlab.config import GitLabConfig
from promotion_harness.providers.gitlab.manifest import gitlab_manifest
from promotion_harness.providers.gitlab.provider import GitLabProvider

__all__ = ["GitLabConfig", "GitLabProvider", "gitlab_manifest"]
