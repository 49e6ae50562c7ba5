"""Abstract base class for Git hosting providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar

from promotion_harness.config import ComponentContext
from promotion_harness.gitops import deployment_patch_path, extract_image, replace_image
from promotion_harness.models.git import Environment, GitType, PullRequest

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class GitProvider(ABC):
    """Abstract base for Git providers.

    Concrete providers implement a handful of REST primitives; the sample
    changes and GitOps promotions used by the workflow are built on top of
    them.
    """

    git_type: ClassVar[GitType]

    context: ComponentContext

    @abstractmethod
    async def get_branch_sha(self, repository: str, branch: str) -> str:
        """Return the head commit sha of a branch."""

    @abstractmethod
    async def get_file_content(self, repository: str, path: str, ref: str) -> str:
        """Return the content of a file at a ref."""

    @abstractmethod
    async def commit_file(
        self, repository: str, branch: str, path: str, content: str, message: str
    ) -> str:
        """Write a file on a branch and return the new commit sha."""

    @abstractmethod
    async def create_branch(self, repository: str, branch: str, from_ref: str) -> None:
        """Create a branch pointing at a ref."""

    @abstractmethod
    async def open_pull_request(
        self, repository: str, head: str, base: str, title: str
    ) -> PullRequest:
        """Open a pull request from head into base."""

    @abstractmethod
    async def merge_pull_request_by_number(self, repository: str, number: int) -> str:
        """Merge a pull request and return the merge commit sha."""

    async def get_source_repo_commit_sha(self, branch: str | None = None) -> str:
        return await self.get_branch_sha(
            self.context.source_repo_name, branch or self.context.default_branch
        )

    async def get_gitops_repo_commit_sha(self, branch: str | None = None) -> str:
        return await self.get_branch_sha(
            self.context.gitops_repo_name, branch or self.context.default_branch
        )

    async def create_sample_pull_request_on_source_repo(self) -> PullRequest:
        """Open a pull request with a trivial change on the source repository."""
        repository = self.context.source_repo_name
        branch = _test_branch_name()
        await self.create_branch(repository, branch, self.context.default_branch)
        await self._commit_sample_change(repository, branch)
        pull_request = await self.open_pull_request(
            repository,
            head=branch,
            base=self.context.default_branch,
            title="Test PR for pipeline verification",
        )
        log.info("Created %s on %s", pull_request, repository)
        return pull_request

    async def create_sample_commit_on_source_repo(self) -> PullRequest:
        """Push a trivial change to the default branch of the source repository."""
        repository = self.context.source_repo_name
        sha = await self._commit_sample_change(repository, self.context.default_branch)
        log.info("Committed %s directly to %s", sha[:7], repository)
        return PullRequest.for_commit(sha, repository)

    async def create_promotion_pull_request_on_gitops_repo(
        self, environment: Environment, image: str
    ) -> PullRequest:
        """Open a pull request pointing an environment overlay at an image."""
        repository = self.context.gitops_repo_name
        branch = _test_branch_name()
        await self.create_branch(repository, branch, self.context.default_branch)
        await self._commit_image(repository, branch, environment, image)
        pull_request = await self.open_pull_request(
            repository,
            head=branch,
            base=self.context.default_branch,
            title=f"Promote {self.context.name} to {environment}",
        )
        log.info("Created promotion %s to %s", pull_request, environment)
        return pull_request

    async def create_promotion_commit_on_gitops_repo(
        self, environment: Environment, image: str
    ) -> str:
        """Point an environment overlay at an image with a direct commit."""
        sha = await self._commit_image(
            self.context.gitops_repo_name,
            self.context.default_branch,
            environment,
            image,
        )
        log.info("Committed promotion to %s as %s", environment, sha[:7])
        return sha

    async def merge_pull_request(self, pull_request: PullRequest) -> PullRequest:
        """Merge a pull request, returning a new merged reference.

        An already merged pull request is returned unchanged.
        """
        if pull_request.merged:
            log.info("%s is already merged", pull_request)
            return pull_request

        merge_sha = await self.merge_pull_request_by_number(
            pull_request.repository, pull_request.number
        )
        merged = pull_request.with_merge_info(merge_sha)
        log.info("Merged %s", merged)
        return merged

    async def extract_application_image(self, environment: Environment) -> str:
        """Read the image deployed to an environment from the GitOps repository."""
        content = await self.get_file_content(
            self.context.gitops_repo_name,
            deployment_patch_path(self.context.name, environment),
            self.context.default_branch,
        )
        return extract_image(content)

    async def _commit_sample_change(self, repository: str, branch: str) -> str:
        path = self.context.sample_change_path
        content = await self.get_file_content(repository, path, branch)
        stamp = datetime.now(timezone.utc).isoformat()
        return await self.commit_file(
            repository,
            branch,
            path,
            f"{content.rstrip()}\n\n<!-- pipeline check {stamp} -->\n",
            "Test commit for pipeline verification",
        )

    async def _commit_image(
        self, repository: str, branch: str, environment: Environment, image: str
    ) -> str:
        path = deployment_patch_path(self.context.name, environment)
        content = await self.get_file_content(repository, path, branch)
        return await self.commit_file(
            repository,
            branch,
            path,
            replace_image(content, image),
            f"Promote {self.context.name} to {environment}: {image}",
        )


def _test_branch_name() -> str:
    return f"test-branch-{int(datetime.now(timezone.utc).timestamp() * 1000)}"
