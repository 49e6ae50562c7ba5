"""Tekton provider implementation."""

import json
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
from promotion_harness.providers.http import read_text, request_json
from promotion_harness.providers.tekton.config import TektonConfig
from promotion_harness.providers.tekton.models import (
    BRANCH_ANNOTATION,
    EVENT_ANNOTATION,
    LOG_URL_ANNOTATION,
    REPOSITORY_LABEL,
    SHA_LABEL,
    STATE_LABEL,
    PipelineRunList,
    PodList,
)
from promotion_harness.providers.tekton.models import (
    PipelineRun as TektonPipelineRun,
)

log = logging.getLogger(__name__)

STATUS_TABLE: Mapping[str, PipelineStatus] = {
    **CANONICAL_STATUS_MAP,
    "succeeded": "success",
    "cancelled": "failure",
    "started": "running",
    "pipelinerunpending": "pending",
}

EVENTS: Mapping[str, EventType] = {
    "pull_request": "pull_request",
    "push": "push",
}


@dataclass(frozen=True, kw_only=True)
class TektonProvider(CIProvider):
    """Tekton provider for PipelineRuns created by Pipelines as Code.

    Runs carry their repository and commit as labels and their trigger as an
    annotation. Discovery needs an event type because a single commit starts
    both pull request and push runs.
    """

    ci_type: ClassVar[CIType] = "tekton"
    requires_event_type: ClassVar[bool] = True

    config: TektonConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: TektonConfig, context: ComponentContext
    ) -> AsyncGenerator["TektonProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {"Authorization": f"Bearer {config.token.get_secret_value()}"}
        async with aiohttp.ClientSession(
            base_url=config.api_server_url,
            headers=headers,
            connector=aiohttp.TCPConnector(ssl=config.verify_ssl),
        ) as session:
            yield cls(config=config, context=context, session=session)

    @property
    def pipelineruns_url(self) -> str:
        return f"/apis/tekton.dev/v1/namespaces/{self.config.namespace}/pipelineruns"

    async def list_pipeline_runs(
        self,
        repository: str,
        sha: str | None = None,
        status: PipelineStatus = "unknown",
    ) -> Sequence[PipelineRun]:
        """List PipelineRuns labelled with the repository (and commit)."""
        selector = f"{REPOSITORY_LABEL}={repository}"
        if sha is not None:
            selector += f",{SHA_LABEL}={sha}"

        data = await request_json(
            self.session,
            "GET",
            self.pipelineruns_url,
            action="list pipeline runs",
            policy=self.config.http_retry,
            params={"labelSelector": selector},
        )
        return [
            self._to_run(item, repository)
            for item in PipelineRunList.model_validate(data).items
        ]

    async def check_pipeline_status(self, pipeline: Pipeline) -> PipelineStatus:
        data = await request_json(
            self.session,
            "GET",
            f"{self.pipelineruns_url}/{pipeline.id}",
            action="get pipeline run",
            policy=self.config.http_retry,
        )
        run = TektonPipelineRun.model_validate(data)
        return map_pipeline_status(run.native_status, STATUS_TABLE)

    async def get_pipeline_logs(self, pipeline: Pipeline) -> str:
        """Collect container logs of every pod the PipelineRun started."""
        data = await request_json(
            self.session,
            "GET",
            f"/api/v1/namespaces/{self.config.namespace}/pods",
            action="list pipeline run pods",
            policy=self.config.http_retry,
            params={"labelSelector": f"tekton.dev/pipelineRun={pipeline.id}"},
        )

        sections: list[str] = []
        for pod in PodList.model_validate(data).items:
            for container in pod.spec.containers:
                text = await request_json(
                    self.session,
                    "GET",
                    f"/api/v1/namespaces/{self.config.namespace}"
                    f"/pods/{pod.metadata.name}/log",
                    action="get pod logs",
                    policy=self.config.http_retry,
                    read=read_text,
                    params={"container": container.name},
                )
                sections.append(f"=== {pod.metadata.name}/{container.name} ===\n{text}")
        return "\n\n".join(sections)

    async def cancel_pipeline_run(self, run: PipelineRun) -> None:
        await request_json(
            self.session,
            "PATCH",
            f"{self.pipelineruns_url}/{run.id}",
            action="cancel pipeline run",
            policy=self.config.http_retry,
            data=json.dumps({"spec": {"status": "Cancelled"}}),
            headers={"Content-Type": "application/merge-patch+json"},
        )

    def is_run_completed(self, run: PipelineRun) -> bool:
        labels = run.raw.get("metadata", {}).get("labels", {})
        return run.is_terminal() or labels.get(STATE_LABEL) == "completed"

    def _to_run(self, run: TektonPipelineRun, repository: str) -> PipelineRun:
        metadata = run.metadata
        return PipelineRun(
            id=metadata.name,
            name=metadata.name,
            repository=repository,
            status=map_pipeline_status(run.native_status, STATUS_TABLE),
            native_status=run.native_status,
            sha=metadata.labels.get(SHA_LABEL),
            event_type=EVENTS.get(metadata.annotations.get(EVENT_ANNOTATION, "")),
            branch=metadata.annotations.get(BRANCH_ANNOTATION),
            updated_at=run.updated_at,
            web_url=metadata.annotations.get(LOG_URL_ANNOTATION),
            raw=run.model_dump(mode="json"),
        )
