"""Bitbucket Git provider implementation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import ClassVar

import aiohttp

from promotion_harness.config import ComponentContext
from promotion_harness.errors import ProviderRequestError
from promotion_harness.models.git import GitType, PullRequest
from promotion_harness.providers.bitbucket.config import BitbucketConfig
from promotion_harness.providers.bitbucket.models import Branch
from promotion_harness.providers.bitbucket.models import (
    PullRequest as BitbucketPullRequest,
)
from promotion_harness.providers.git_base import GitProvider
from promotion_harness.providers.http import NO_RETRY, read_text, request_json

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class BitbucketProvider(GitProvider):
    """Bitbucket Cloud Git provider.

    Pull request payloads only carry abbreviated hashes, so commit shas are
    read from the branch heads instead.
    """

    git_type: ClassVar[GitType] = "bitbucket"

    config: BitbucketConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: BitbucketConfig, context: ComponentContext
    ) -> AsyncGenerator["BitbucketProvider", None]:
        """Create provider with managed session lifecycle."""
        headers: dict[str, str] = {}
        auth: aiohttp.BasicAuth | None = None
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"
        elif config.username is not None and config.app_password is not None:
            auth = aiohttp.BasicAuth(
                config.username, config.app_password.get_secret_value()
            )
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
            auth=auth,
        ) as session:
            yield cls(config=config, context=context, session=session)

    def repo_url(self, repository: str) -> str:
        return f"repositories/{self.config.workspace}/{repository}"

    async def get_branch_sha(self, repository: str, branch: str) -> str:
        data = await request_json(
            self.session,
            "GET",
            f"{self.repo_url(repository)}/refs/branches/{branch}",
            action="get branch",
            policy=self.config.http_retry,
        )
        return Branch.model_validate(data).target.hash

    async def get_file_content(self, repository: str, path: str, ref: str) -> str:
        return await request_json(
            self.session,
            "GET",
            f"{self.repo_url(repository)}/src/{ref}/{path}",
            action="get file",
            policy=self.config.http_retry,
            read=read_text,
        )

    async def commit_file(
        self, repository: str, branch: str, path: str, content: str, message: str
    ) -> str:
        """Commit through the src endpoint, which answers without a body."""
        await request_json(
            self.session,
            "POST",
            f"{self.repo_url(repository)}/src",
            action="create commit",
            policy=NO_RETRY,
            expected=(201,),
            read=read_text,
            data={path: content, "message": message, "branch": branch},
        )
        return await self.get_branch_sha(repository, branch)

    async def create_branch(self, repository: str, branch: str, from_ref: str) -> None:
        sha = await self.get_branch_sha(repository, from_ref)
        await request_json(
            self.session,
            "POST",
            f"{self.repo_url(repository)}/refs/branches",
            action="create branch",
            policy=NO_RETRY,
            expected=(201,),
            json={"name": branch, "target": {"hash": sha}},
        )
        log.info("Created branch %s on %s at %s", branch, repository, sha[:7])

    async def open_pull_request(
        self, repository: str, head: str, base: str, title: str
    ) -> PullRequest:
        data = await request_json(
            self.session,
            "POST",
            f"{self.repo_url(repository)}/pullrequests",
            action="create pull request",
            policy=NO_RETRY,
            expected=(201,),
            json={
                "title": title,
                "source": {"branch": {"name": head}},
                "destination": {"branch": {"name": base}},
            },
        )
        pull_request = BitbucketPullRequest.model_validate(data)
        return PullRequest(
            number=pull_request.id,
            sha=await self.get_branch_sha(repository, head),
            repository=repository,
            url=pull_request.links.html.href,
        )

    async def merge_pull_request_by_number(self, repository: str, number: int) -> str:
        data = await request_json(
            self.session,
            "POST",
            f"{self.repo_url(repository)}/pullrequests/{number}/merge",
            action="merge pull request",
            policy=NO_RETRY,
            json={"merge_strategy": "merge_commit"},
        )
        pull_request = BitbucketPullRequest.model_validate(data)
        if pull_request.merge_commit is None:
            raise ProviderRequestError(
                f"Pull request #{number} has no merge commit "
                f"(state={pull_request.state})"
            )
        return pull_request.merge_commit.hash
