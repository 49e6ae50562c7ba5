"""Azure DevOps provider implementation."""

import base64
import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import ClassVar

import aiohttp

from promotion_harness.config import ComponentContext
from promotion_harness.models.pipeline import (
    CANONICAL_STATUS_MAP,
    CIType,
    EventType,
    Pipeline,
    PipelineRun,
    PipelineStatus,
    map_pipeline_status,
)
from promotion_harness.providers.azure_devops.config import AzureDevOpsConfig
from promotion_harness.providers.azure_devops.models import (
    Build,
    BuildDefinitionsResponse,
    BuildLogsResponse,
    BuildsResponse,
)
from promotion_harness.providers.base import CIProvider, InitialRunPolicy
from promotion_harness.providers.http import read_text, request_json

log = logging.getLogger(__name__)

STATUS_TABLE: Mapping[str, PipelineStatus] = {
    **CANONICAL_STATUS_MAP,
    "notstarted": "pending",
    "postponed": "pending",
    "inprogress": "running",
    "cancelling": "running",
    "succeeded": "success",
    "partiallysucceeded": "success",
}

# Pull request validation builds queued by branch policies report "manual".
REASON_TO_EVENT: Mapping[str, EventType] = {
    "pullRequest": "pull_request",
    "manual": "pull_request",
    "individualCI": "push",
    "batchedCI": "push",
}


@dataclass(frozen=True, kw_only=True)
class AzureDevOpsProvider(CIProvider):
    """Azure DevOps pipeline provider.

    Runs are read through the Build API, which exposes the commit, trigger
    reason and status of every run of a build definition.
    """

    ci_type: ClassVar[CIType] = "azure"
    initial_run_policy: ClassVar[InitialRunPolicy] = "cancel"

    config: AzureDevOpsConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: AzureDevOpsConfig, context: ComponentContext
    ) -> AsyncGenerator["AzureDevOpsProvider", None]:
        """Create provider with managed session lifecycle."""
        # Azure DevOps uses Basic Auth with empty username and PAT as password
        auth_string = f":{config.token.get_secret_value()}"
        auth_bytes = base64.b64encode(auth_string.encode("ascii")).decode("ascii")
        headers = {
            "Authorization": f"Basic {auth_bytes}",
            "Content-Type": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, context=context, session=session)

    @property
    def builds_url(self) -> str:
        return f"/{self.config.organization}/{self.config.project}/_apis/build/builds"

    @property
    def api_params(self) -> dict[str, str]:
        return {"api-version": self.config.api_version}

    async def get_definition_id(self, repository: str) -> int | None:
        """Return the id of the build definition named after a repository."""
        data = await request_json(
            self.session,
            "GET",
            f"/{self.config.organization}/{self.config.project}"
            "/_apis/build/definitions",
            action="list build definitions",
            policy=self.config.http_retry,
            params={**self.api_params, "name": repository},
        )
        definitions = BuildDefinitionsResponse.model_validate(data).value
        return definitions[0].id if definitions else None

    async def list_pipeline_runs(
        self,
        repository: str,
        sha: str | None = None,
        status: PipelineStatus = "unknown",
    ) -> Sequence[PipelineRun]:
        """List builds of the definition named after the repository."""
        if (definition_id := await self.get_definition_id(repository)) is None:
            log.info("No build definition named %s", repository)
            return []

        data = await request_json(
            self.session,
            "GET",
            self.builds_url,
            action="list builds",
            policy=self.config.http_retry,
            params={**self.api_params, "definitions": str(definition_id)},
        )
        runs = [
            self._to_run(build, repository)
            for build in BuildsResponse.model_validate(data).value
        ]
        if sha is not None:
            runs = [run for run in runs if run.sha == sha]
        return runs

    async def check_pipeline_status(self, pipeline: Pipeline) -> PipelineStatus:
        data = await request_json(
            self.session,
            "GET",
            f"{self.builds_url}/{pipeline.id}",
            action="get build",
            policy=self.config.http_retry,
            params=self.api_params,
        )
        return map_pipeline_status(
            Build.model_validate(data).native_status, STATUS_TABLE
        )

    async def get_pipeline_logs(self, pipeline: Pipeline) -> str:
        data = await request_json(
            self.session,
            "GET",
            f"{self.builds_url}/{pipeline.id}/logs",
            action="list build logs",
            policy=self.config.http_retry,
            params=self.api_params,
        )

        sections: list[str] = []
        for build_log in BuildLogsResponse.model_validate(data).value:
            sections.append(
                await request_json(
                    self.session,
                    "GET",
                    f"{self.builds_url}/{pipeline.id}/logs/{build_log.id}",
                    action="get build log",
                    policy=self.config.http_retry,
                    read=read_text,
                    params=self.api_params,
                )
            )
        return "\n".join(sections)

    async def cancel_pipeline_run(self, run: PipelineRun) -> None:
        await request_json(
            self.session,
            "PATCH",
            f"{self.builds_url}/{run.id}",
            action="cancel build",
            policy=self.config.http_retry,
            params=self.api_params,
            json={"status": "cancelling"},
        )

    def _to_run(self, build: Build, repository: str) -> PipelineRun:
        return PipelineRun(
            id=str(build.id),
            name=f"{repository}-{build.build_number}",
            repository=repository,
            status=map_pipeline_status(build.native_status, STATUS_TABLE),
            native_status=build.native_status,
            sha=build.commit_sha,
            event_type=REASON_TO_EVENT.get(build.reason),
            branch=(build.source_branch or "").removeprefix("refs/heads/") or None,
            updated_at=build.last_changed_date,
            web_url=build.web_url,
            raw=build.model_dump(mode="json", by_alias=True),
        )
