"""Pydantic models for GitHub Actions API responses."""

from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from pydantic import BaseModel

type WorkflowConclusion = Literal[
    "success",
    "failure",
    "cancelled",
    "timed_out",
    "action_required",
    "neutral",
    "skipped",
    "stale",
]


class WorkflowRun(BaseModel):
    """A workflow run from GitHub Actions API."""

    id: int
    status: str
    conclusion: WorkflowConclusion | None = None
    name: str
    event: str
    head_sha: str
    head_branch: str | None = None
    html_url: str
    created_at: datetime
    updated_at: datetime

    @property
    def native_status(self) -> str:
        """Conclusion of a completed run, otherwise its status."""
        if self.status == "completed" and self.conclusion is not None:
            return self.conclusion
        return self.status


class WorkflowRunsResponse(BaseModel):
    """Response from list workflow runs API."""

    total_count: int = 0
    workflow_runs: Sequence[WorkflowRun]


class WorkflowJob(BaseModel):
    """A job of a workflow run."""

    id: int
    name: str
    status: str
    conclusion: str | None = None


class WorkflowJobsResponse(BaseModel):
    """Response from list jobs for a workflow run API."""

    jobs: Sequence[WorkflowJob]
