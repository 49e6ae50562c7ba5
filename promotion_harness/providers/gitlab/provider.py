"""GitLab Git provider implementation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import quote

import aiohttp

from promotion_harness.config import ComponentContext
from promotion_harness.errors import ProviderRequestError
from promotion_harness.models.git import GitType, PullRequest
from promotion_harness.providers.git_base import GitProvider
from promotion_harness.providers.gitlab.config import GitLabConfig
from promotion_harness.providers.gitlab.models import Branch, Commit, MergeRequest
from promotion_harness.providers.http import NO_RETRY, read_text, request_json

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class GitLabProvider(GitProvider):
    """GitLab Git provider; projects are addressed as ``<group>/<repository>``."""

    git_type: ClassVar[GitType] = "gitlab"

    config: GitLabConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitLabConfig, context: ComponentContext
    ) -> AsyncGenerator["GitLabProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {"Authorization": f"Bearer {config.token.get_secret_value()}"}
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, context=context, session=session)

    def project_url(self, repository: str) -> str:
        return f"projects/{quote(f'{self.config.group}/{repository}', safe='')}"

    def repository_url(self, repository: str, resource: str, name: str) -> str:
        quoted = quote(name, safe="")
        return f"{self.project_url(repository)}/repository/{resource}/{quoted}"

    async def get_branch_sha(self, repository: str, branch: str) -> str:
        data = await request_json(
            self.session,
            "GET",
            self.repository_url(repository, "branches", branch),
            action="get branch",
            policy=self.config.http_retry,
        )
        return Branch.model_validate(data).commit.id

    async def get_file_content(self, repository: str, path: str, ref: str) -> str:
        return await request_json(
            self.session,
            "GET",
            f"{self.repository_url(repository, 'files', path)}/raw",
            action="get file",
            policy=self.config.http_retry,
            read=read_text,
            params={"ref": ref},
        )

    async def commit_file(
        self, repository: str, branch: str, path: str, content: str, message: str
    ) -> str:
        data = await request_json(
            self.session,
            "POST",
            f"{self.project_url(repository)}/repository/commits",
            action="create commit",
            policy=NO_RETRY,
            expected=(201,),
            json={
                "branch": branch,
                "commit_message": message,
                "actions": [
                    {"action": "update", "file_path": path, "content": content}
                ],
            },
        )
        return Commit.model_validate(data).id

    async def create_branch(self, repository: str, branch: str, from_ref: str) -> None:
        await request_json(
            self.session,
            "POST",
            f"{self.project_url(repository)}/repository/branches",
            action="create branch",
            policy=NO_RETRY,
            expected=(201,),
            params={"branch": branch, "ref": from_ref},
        )
        log.info("Created branch %s on %s from %s", branch, repository, from_ref)

    async def open_pull_request(
        self, repository: str, head: str, base: str, title: str
    ) -> PullRequest:
        data = await request_json(
            self.session,
            "POST",
            f"{self.project_url(repository)}/merge_requests",
            action="create merge request",
            policy=NO_RETRY,
            expected=(201,),
            json={"source_branch": head, "target_branch": base, "title": title},
        )
        merge_request = MergeRequest.model_validate(data)
        return PullRequest(
            number=merge_request.iid,
            sha=merge_request.sha,
            repository=repository,
            url=merge_request.web_url,
        )

    async def merge_pull_request_by_number(self, repository: str, number: int) -> str:
        data = await request_json(
            self.session,
            "PUT",
            f"{self.project_url(repository)}/merge_requests/{number}/merge",
            action="merge merge request",
            policy=NO_RETRY,
        )
        merge_request = MergeRequest.model_validate(data)
        if merge_request.merge_commit_sha is None:
            raise ProviderRequestError(
                f"Merge request !{number} has no merge commit "
                f"(state={merge_request.state})"
            )
        return merge_request.merge_commit_sha
