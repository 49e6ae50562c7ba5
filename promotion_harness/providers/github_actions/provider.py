"""GitHub Actions provider implementation."""

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
from promotion_harness.providers.base import CIProvider
from promotion_harness.providers.github_actions.config import GitHubActionsConfig
from promotion_harness.providers.github_actions.models import (
    WorkflowJobsResponse,
    WorkflowRun,
    WorkflowRunsResponse,
)
from promotion_harness.providers.http import read_text, request_json

log = logging.getLogger(__name__)

STATUS_TABLE: Mapping[str, PipelineStatus] = {
    **CANONICAL_STATUS_MAP,
    "in_progress": "running",
    "waiting": "pending",
    "requested": "pending",
    "failure": "failure",
    "cancelled": "failure",
    "timed_out": "failure",
    "action_required": "failure",
    "neutral": "success",
    "stale": "failure",
}

STATUS_FILTER: Mapping[PipelineStatus, str] = {
    "pending": "queued",
    "running": "in_progress",
    "success": "success",
    "failure": "failure",
}

EVENTS: Mapping[str, EventType] = {
    "push": "push",
    "pull_request": "pull_request",
    "pull_request_target": "pull_request",
}


@dataclass(frozen=True, kw_only=True)
class GitHubActionsProvider(CIProvider):
    """GitHub Actions pipeline provider."""

    ci_type: ClassVar[CIType] = "githubactions"

    config: GitHubActionsConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitHubActionsConfig, context: ComponentContext
    ) -> AsyncGenerator["GitHubActionsProvider", None]:
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

    def runs_url(self, repository: str) -> str:
        return f"/repos/{self.config.owner}/{repository}/actions/runs"

    async def list_pipeline_runs(
        self,
        repository: str,
        sha: str | None = None,
        status: PipelineStatus = "unknown",
    ) -> Sequence[PipelineRun]:
        """List workflow runs of a repository, paginating through all pages."""
        runs: list[PipelineRun] = []
        page = 1

        while True:
            params = {"per_page": "100", "page": str(page)}
            if sha is not None:
                params["head_sha"] = sha
            if (native_status := STATUS_FILTER.get(status)) is not None:
                params["status"] = native_status

            data = await request_json(
                self.session,
                "GET",
                self.runs_url(repository),
                action="list workflow runs",
                policy=self.config.http_retry,
                params=params,
            )
            response = WorkflowRunsResponse.model_validate(data)
            runs.extend(self._to_run(run, repository) for run in response.workflow_runs)

            if len(response.workflow_runs) < 100:
                break

            page += 1

        return runs

    async def check_pipeline_status(self, pipeline: Pipeline) -> PipelineStatus:
        data = await request_json(
            self.session,
            "GET",
            f"{self.runs_url(pipeline.repository_name)}/{pipeline.id}",
            action="get workflow run",
            policy=self.config.http_retry,
        )
        run = WorkflowRun.model_validate(data)
        return map_pipeline_status(run.native_status, STATUS_TABLE)

    async def get_pipeline_logs(self, pipeline: Pipeline) -> str:
        """Concatenate the logs of every job of the workflow run."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.runs_url(pipeline.repository_name)}/{pipeline.id}/jobs",
            action="list workflow jobs",
            policy=self.config.http_retry,
        )

        sections: list[str] = []
        for job in WorkflowJobsResponse.model_validate(data).jobs:
            text = await request_json(
                self.session,
                "GET",
                f"/repos/{self.config.owner}/{pipeline.repository_name}"
                f"/actions/jobs/{job.id}/logs",
                action="download job logs",
                policy=self.config.http_retry,
                read=read_text,
            )
            state = job.conclusion or job.status
            sections.append(f"=== {job.name} ({state}) ===\n{text}")
        return "\n\n".join(sections)

    async def cancel_pipeline_run(self, run: PipelineRun) -> None:
        await request_json(
            self.session,
            "POST",
            f"{self.runs_url(run.repository)}/{run.id}/cancel",
            action="cancel workflow run",
            policy=self.config.http_retry,
            expected=(202,),
        )

    def _to_run(self, run: WorkflowRun, repository: str) -> PipelineRun:
        return PipelineRun(
            id=str(run.id),
            name=run.name,
            repository=repository,
            status=map_pipeline_status(run.native_status, STATUS_TABLE),
            native_status=run.native_status,
            sha=run.head_sha,
            event_type=EVENTS.get(run.event),
            branch=run.head_branch,
            updated_at=run.updated_at,
            web_url=run.html_url,
            raw=run.model_dump(mode="json"),
        )
