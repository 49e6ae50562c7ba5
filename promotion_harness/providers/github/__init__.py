"""GitHub Git provider module."""

from promotion_harness.providers.github.config import GitHubConfig
from promotion_harness.providers.github.manifest import github_manifest
from promotion_harness.providers.github.provider import GitHubProvider

__all__ = ["GitHubConfig", "GitHubProvider", "github_manifest"]
