"""Jenkins provider implementation."""

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
from promotion_harness.providers.base import CIProvider, InitialRunPolicy
from promotion_harness.providers.http import read_text, request_json
from promotion_harness.providers.jenkins.config import JenkinsConfig
from promotion_harness.providers.jenkins.models import Build, Job

log = logging.getLogger(__name__)

STATUS_TABLE: Mapping[str, PipelineStatus] = {
    **CANONICAL_STATUS_MAP,
    "building": "running",
    "failure": "failure",
    "unstable": "failure",
    "aborted": "failure",
    "not_built": "pending",
}

EVENTS: Mapping[str, EventType] = {
    "pull_request": "pull_request",
    "push": "push",
}

BUILD_TREE = (
    "number,url,building,result,timestamp,duration,"
    "actions[_class,lastBuiltRevision[SHA1,branch[name]],"
    "buildsByBranchName,causes[_class,shortDescription],parameters[name,value]]"
)


@dataclass(frozen=True, kw_only=True)
class JenkinsProvider(CIProvider):
    """Jenkins provider.

    Builds are bound 1:1 to the commit they built, so trigger types are not
    used for discovery and pull requests do not trigger builds.
    """

    ci_type: ClassVar[CIType] = "jenkins"
    uses_event_type: ClassVar[bool] = False
    supports_pull_request_triggers: ClassVar[bool] = False
    initial_run_policy: ClassVar[InitialRunPolicy] = "cancel"

    config: JenkinsConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: JenkinsConfig, context: ComponentContext
    ) -> AsyncGenerator["JenkinsProvider", None]:
        """Create provider with managed session lifecycle."""
        auth = aiohttp.BasicAuth(config.username, config.token.get_secret_value())
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            auth=auth,
        ) as session:
            yield cls(config=config, context=context, session=session)

    def job_url(self, job: str) -> str:
        folder = self.config.folder or self.context.name
        return f"/job/{folder}/job/{job}"

    async def list_pipeline_runs(
        self,
        repository: str,
        sha: str | None = None,
        status: PipelineStatus = "unknown",
    ) -> Sequence[PipelineRun]:
        """List recent builds of the job named after the repository."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.job_url(repository)}/api/json",
            action="list builds",
            policy=self.config.http_retry,
            params={"tree": f"builds[{BUILD_TREE}]{{0,{self.config.max_builds}}}"},
        )
        runs = [
            self._to_run(build, repository)
            for build in Job.model_validate(data).builds
        ]
        if sha is not None:
            runs = [run for run in runs if run.sha == sha]
        return runs

    def pipeline_from_run(self, run: PipelineRun) -> Pipeline:
        pipeline = super().pipeline_from_run(run)
        pipeline.job_name = run.repository
        pipeline.build_number = run.raw["number"]
        return pipeline

    async def check_pipeline_status(self, pipeline: Pipeline) -> PipelineStatus:
        data = await request_json(
            self.session,
            "GET",
            f"{self._build_url(pipeline.repository_name, pipeline.build_number)}"
            "/api/json",
            action="get build",
            policy=self.config.http_retry,
            params={"tree": "number,url,building,result,timestamp,duration"},
        )
        return map_pipeline_status(
            Build.model_validate(data).native_status, STATUS_TABLE
        )

    async def get_pipeline_logs(self, pipeline: Pipeline) -> str:
        return await request_json(
            self.session,
            "GET",
            f"{self._build_url(pipeline.repository_name, pipeline.build_number)}"
            "/consoleText",
            action="get console output",
            policy=self.config.http_retry,
            read=read_text,
        )

    async def cancel_pipeline_run(self, run: PipelineRun) -> None:
        await request_json(
            self.session,
            "POST",
            f"{self._build_url(run.repository, run.raw['number'])}/stop",
            action="stop build",
            policy=self.config.http_retry,
            expected=(200, 302),
            allow_redirects=False,
        )

    def _build_url(self, job: str, build_number: int | None) -> str:
        return f"{self.job_url(job)}/{build_number}"

    def _to_run(self, build: Build, repository: str) -> PipelineRun:
        return PipelineRun(
            id=f"{repository}-{build.number}",
            name=f"{repository} #{build.number}",
            repository=repository,
            status=map_pipeline_status(build.native_status, STATUS_TABLE),
            native_status=build.native_status,
            sha=build.commit_sha,
            event_type=EVENTS.get(build.trigger or ""),
            branch=build.branch,
            updated_at=build.updated_at,
            web_url=build.url,
            raw=build.model_dump(mode="json"),
        )
