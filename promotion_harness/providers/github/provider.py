"""GitHub Git provider implementation."""

import base64
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import ClassVar

import aiohttp

from promotion_harness.config import ComponentContext
from promotion_harness.models.git import GitType, PullRequest
from promotion_harness.providers.git_base import GitProvider
from promotion_harness.providers.github.config import GitHubConfig
from promotion_harness.providers.github.models import (
    ContentUpdate,
    FileContent,
    MergeResult,
    Ref,
)
from promotion_harness.providers.github.models import (
    PullRequest as GitHubPullRequest,
)
from promotion_harness.providers.http import NO_RETRY, request_json

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class GitHubProvider(GitProvider):
    """GitHub Git provider using the REST contents, refs and pulls APIs."""

    git_type: ClassVar[GitType] = "github"

    config: GitHubConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitHubConfig, context: ComponentContext
    ) -> AsyncGenerator["GitHubProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {config.token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, context=context, session=session)

    def repo_url(self, repository: str) -> str:
        return f"/repos/{self.config.owner}/{repository}"

    async def get_branch_sha(self, repository: str, branch: str) -> str:
        data = await request_json(
            self.session,
            "GET",
            f"{self.repo_url(repository)}/git/ref/heads/{branch}",
            action="get branch",
            policy=self.config.http_retry,
        )
        return Ref.model_validate(data).object.sha

    async def get_file(self, repository: str, path: str, ref: str) -> FileContent:
        data = await request_json(
            self.session,
            "GET",
            f"{self.repo_url(repository)}/contents/{path}",
            action="get file contents",
            policy=self.config.http_retry,
            params={"ref": ref},
        )
        return FileContent.model_validate(data)

    async def get_file_content(self, repository: str, path: str, ref: str) -> str:
        file = await self.get_file(repository, path, ref)
        return base64.b64decode(file.content).decode("utf-8")

    async def commit_file(
        self, repository: str, branch: str, path: str, content: str, message: str
    ) -> str:
        current = await self.get_file(repository, path, branch)
        data = await request_json(
            self.session,
            "PUT",
            f"{self.repo_url(repository)}/contents/{path}",
            action="update file",
            policy=NO_RETRY,
            expected=(200, 201),
            json={
                "message": message,
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
                "sha": current.sha,
                "branch": branch,
            },
        )
        return ContentUpdate.model_validate(data).commit.sha

    async def create_branch(self, repository: str, branch: str, from_ref: str) -> None:
        sha = await self.get_branch_sha(repository, from_ref)
        await request_json(
            self.session,
            "POST",
            f"{self.repo_url(repository)}/git/refs",
            action="create branch",
            policy=NO_RETRY,
            expected=(201,),
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        log.info("Created branch %s on %s at %s", branch, repository, sha[:7])

    async def open_pull_request(
        self, repository: str, head: str, base: str, title: str
    ) -> PullRequest:
        data = await request_json(
            self.session,
            "POST",
            f"{self.repo_url(repository)}/pulls",
            action="create pull request",
            policy=NO_RETRY,
            expected=(201,),
            json={"title": title, "head": head, "base": base, "body": title},
        )
        pull_request = GitHubPullRequest.model_validate(data)
        return PullRequest(
            number=pull_request.number,
            sha=pull_request.head.sha,
            repository=repository,
            url=pull_request.html_url,
        )

    async def merge_pull_request_by_number(self, repository: str, number: int) -> str:
        data = await request_json(
            self.session,
            "PUT",
            f"{self.repo_url(repository)}/pulls/{number}/merge",
            action="merge pull request",
            policy=NO_RETRY,
            json={"merge_method": "merge"},
        )
        return MergeResult.model_validate(data).sha
