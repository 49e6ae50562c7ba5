"""Git references, environments and promotion chain."""

from datetime import datetime, timezone
from typing import Literal

from promotion_harness.models.base import Model

type Environment = Literal["development", "stage", "prod"]

type GitType = Literal["github", "gitlab", "bitbucket"]

ENVIRONMENT_CHAIN: tuple[Environment, ...] = ("development", "stage", "prod")


def previous_environment(environment: Environment) -> Environment | None:
    """Return the environment an image is promoted from, if any."""
    index = ENVIRONMENT_CHAIN.index(environment)
    return ENVIRONMENT_CHAIN[index - 1] if index > 0 else None


def next_environment(environment: Environment) -> Environment | None:
    """Return the environment an image is promoted to, if any."""
    index = ENVIRONMENT_CHAIN.index(environment)
    if index + 1 < len(ENVIRONMENT_CHAIN):
        return ENVIRONMENT_CHAIN[index + 1]
    return None


class PullRequest(Model):
    """A pull request, or a bare commit when number is 0.

    The sha is the correlation key used to find the pipelines a change
    triggered.
    """

    number: int
    sha: str
    repository: str
    merged: bool = False
    merged_at: datetime | None = None
    url: str | None = None

    @classmethod
    def for_commit(cls, sha: str, repository: str) -> "PullRequest":
        """Reference a direct commit that has no pull request."""
        return cls(number=0, sha=sha, repository=repository)

    @property
    def is_commit(self) -> bool:
        """Return True when this references a bare commit."""
        return self.number == 0

    def with_merge_info(
        self, merge_sha: str, merged_at: datetime | None = None
    ) -> "PullRequest":
        """Return a merged copy pointing at the merge commit."""
        return self.model_copy(
            update={
                "sha": merge_sha,
                "merged": True,
                "merged_at": merged_at or datetime.now(timezone.utc),
            }
        )

    def __str__(self) -> str:
        text = f"PR #{self.number} ({self.sha[:7]})"
        if self.merged:
            text += " [MERGED]"
        if self.url:
            text += f" [{self.url}]"
        return text
