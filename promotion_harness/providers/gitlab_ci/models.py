"""Pydantic models for GitLab CI API responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from promotion_harness.models.pipeline import EventType

type GitLabPipelineStatus = Literal[
    "created",
    "waiting_for_resource",
    "preparing",
    "pending",
    "running",
    "success",
    "failed",
    "canceled",
    "skipped",
    "manual",
    "scheduled",
]

MERGE_REQUEST_SOURCES = frozenset(
    ["merge_request_event", "external_pull_request_event"]
)


class Pipeline(BaseModel):
    """A pipeline of a project, as listed by ``/projects/:id/pipelines``."""

    id: int
    status: GitLabPipelineStatus
    ref: str
    sha: str
    source: str | None = None
    web_url: str
    created_at: datetime
    updated_at: datetime

    @property
    def event_type(self) -> EventType | None:
        """Trigger of the pipeline; merge request pipelines are pull requests."""
        if self.source in MERGE_REQUEST_SOURCES:
            return "pull_request"
        if self.source == "push":
            return "push"
        return None


class Job(BaseModel):
    """A job of a GitLab pipeline."""

    id: int
    name: str
    stage: str
    status: str
    failure_reason: str | None = None

    @property
    def heading(self) -> str:
        state = self.status
        if self.failure_reason:
            state += f": {self.failure_reason}"
        return f"{self.stage}/{self.name} ({state})"
