"""GitLab CI provider implementation."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import quote

import aiohttp

from promotion_harness.config import ComponentContext
from promotion_harness.models.pipeline import (
    CANONICAL_STATUS_MAP,
    CIType,
    Pipeline,
    PipelineRun,
    PipelineStatus,
    map_pipeline_status,
)
from promotion_harness.providers.base import CIProvider
from promotion_harness.providers.gitlab_ci.config import GitLabCIConfig
from promotion_harness.providers.gitlab_ci.models import GitLabPipelineStatus, Job
from promotion_harness.providers.gitlab_ci.models import Pipeline as GitLabPipeline
from promotion_harness.providers.http import read_text, request_json

log = logging.getLogger(__name__)

COMPLETED_STATUSES: frozenset[GitLabPipelineStatus] = frozenset(
    ["success", "failed", "canceled", "skipped", "manual"]
)

STATUS_TABLE: Mapping[str, PipelineStatus] = {
    **CANONICAL_STATUS_MAP,
    "waiting_for_resource": "pending",
    "preparing": "pending",
}

STATUS_FILTER: Mapping[PipelineStatus, GitLabPipelineStatus] = {
    "pending": "pending",
    "running": "running",
    "success": "success",
    "failure": "failed",
    "cancelled": "canceled",
}


@dataclass(frozen=True, kw_only=True)
class GitLabCIProvider(CIProvider):
    """GitLab CI pipeline provider.

    Pipelines are looked up per project; the pipeline source tells pushes
    apart from merge request pipelines.
    """

    ci_type: ClassVar[CIType] = "gitlabci"

    config: GitLabCIConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitLabCIConfig, context: ComponentContext
    ) -> AsyncGenerator["GitLabCIProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {"Authorization": f"Bearer {config.token.get_secret_value()}"}
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, context=context, session=session)

    def project_path(self, repository: str) -> str:
        return quote(f"{self.config.group}/{repository}", safe="")

    async def list_pipeline_runs(
        self,
        repository: str,
        sha: str | None = None,
        status: PipelineStatus = "unknown",
    ) -> Sequence[PipelineRun]:
        """List pipelines of a project, newest update first."""
        params = {"per_page": "100", "order_by": "updated_at", "sort": "desc"}
        if sha is not None:
            params["sha"] = sha
        if (native_status := STATUS_FILTER.get(status)) is not None:
            params["status"] = native_status

        data = await request_json(
            self.session,
            "GET",
            f"projects/{self.project_path(repository)}/pipelines",
            action="list pipelines",
            policy=self.config.http_retry,
            params=params,
        )
        return [
            self._to_run(GitLabPipeline.model_validate(item), repository)
            for item in data
        ]

    async def check_pipeline_status(self, pipeline: Pipeline) -> PipelineStatus:
        data = await request_json(
            self.session,
            "GET",
            f"projects/{self.project_path(pipeline.repository_name)}"
            f"/pipelines/{pipeline.id}",
            action="get pipeline",
            policy=self.config.http_retry,
        )
        return map_pipeline_status(
            GitLabPipeline.model_validate(data).status, STATUS_TABLE
        )

    async def get_pipeline_logs(self, pipeline: Pipeline) -> str:
        """Concatenate the traces of every job of the pipeline."""
        project = self.project_path(pipeline.repository_name)
        data = await request_json(
            self.session,
            "GET",
            f"projects/{project}/pipelines/{pipeline.id}/jobs",
            action="list pipeline jobs",
            policy=self.config.http_retry,
        )

        sections: list[str] = []
        for job in (Job.model_validate(item) for item in data):
            trace = await request_json(
                self.session,
                "GET",
                f"projects/{project}/jobs/{job.id}/trace",
                action="get job trace",
                policy=self.config.http_retry,
                read=read_text,
            )
            sections.append(f"=== {job.heading} ===\n{trace}")
        return "\n\n".join(sections)

    async def cancel_pipeline_run(self, run: PipelineRun) -> None:
        await request_json(
            self.session,
            "POST",
            f"projects/{self.project_path(run.repository)}/pipelines/{run.id}/cancel",
            action="cancel pipeline",
            policy=self.config.http_retry,
            expected=(200, 201),
        )

    def is_run_completed(self, run: PipelineRun) -> bool:
        return run.native_status in COMPLETED_STATUSES

    def _to_run(self, pipeline: GitLabPipeline, repository: str) -> PipelineRun:
        return PipelineRun(
            id=str(pipeline.id),
            name=f"Pipeline-{pipeline.id}",
            repository=repository,
            status=map_pipeline_status(pipeline.status, STATUS_TABLE),
            native_status=pipeline.status,
            sha=pipeline.sha,
            event_type=pipeline.event_type,
            branch=pipeline.ref,
            updated_at=pipeline.updated_at,
            web_url=pipeline.web_url,
            raw=pipeline.model_dump(mode="json"),
        )
