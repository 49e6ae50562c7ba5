"""GitHub Actions provider module."""

from promotion_harness.providers.github_actions.config import GitHubActionsConfig
from promotion_harness.providers.github_actions.manifest import (
    github_actions_manifest,
)
from promotion_harness.providers.github_actions.provider import GitHubActionsProvider

__all__ = ["GitHubActionsConfig", "GitHubActionsProvider", "github_actions_manifest"]
