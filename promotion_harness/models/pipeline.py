"""Pipeline models and status normalisation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

type PipelineStatus = Literal[
    "pending",
    "running",
    "success",
    "failure",
    "cancelled",
    "unknown",
]

type EventType = Literal["pull_request", "push", "commit", "build"]

type CIType = Literal["tekton", "githubactions", "gitlabci", "jenkins", "azure"]

TERMINAL_STATUSES: frozenset[PipelineStatus] = frozenset(
    ["success", "failure", "cancelled"]
)

CANONICAL_STATUS_MAP: Mapping[str, PipelineStatus] = {
    "success": "success",
    "failed": "failure",
    "canceled": "failure",
    "running": "running",
    "pending": "pending",
    "created": "pending",
    "queued": "pending",
    "manual": "pending",
    "scheduled": "pending",
    "skipped": "failure",
}


def map_pipeline_status(
    native_status: object,
    table: Mapping[str, PipelineStatus] = CANONICAL_STATUS_MAP,
) -> PipelineStatus:
    """Map a provider-native status string onto a PipelineStatus.

    The lookup is case-insensitive and total: anything the table does not know
    about, including non-string values, maps to "unknown".
    """
    if not isinstance(native_status, str):
        return "unknown"
    return table.get(native_status.strip().lower(), "unknown")


@dataclass(frozen=True, kw_only=True)
class PipelineRun:
    """Provider-normalised snapshot of a native pipeline run."""

    id: str
    name: str
    repository: str
    status: PipelineStatus
    native_status: str
    sha: str | None = None
    event_type: EventType | None = None
    branch: str | None = None
    updated_at: datetime | None = None
    web_url: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    def is_terminal(self) -> bool:
        """Return True when the run reached a final status."""
        return self.status in TERMINAL_STATUSES


@dataclass(kw_only=True)
class Pipeline:
    """A CI run bound to a commit, tracked until it reaches a terminal status.

    A pipeline is owned by the polling loop that received it from discovery;
    only that loop calls update_status.
    """

    id: str
    ci_type: CIType
    repository_name: str
    status: PipelineStatus
    name: str | None = None
    sha: str | None = None
    web_url: str | None = None
    logs: str | None = None
    raw_result: Mapping[str, Any] | None = field(default=None, repr=False)
    build_number: int | None = None
    job_name: str | None = None

    @classmethod
    def from_run(cls, run: PipelineRun, ci_type: CIType) -> "Pipeline":
        """Create a tracked pipeline from a discovered run."""
        return cls(
            id=run.id,
            ci_type=ci_type,
            repository_name=run.repository,
            status=run.status,
            name=run.name,
            sha=run.sha,
            web_url=run.web_url,
            raw_result=run.raw,
        )

    @property
    def display_name(self) -> str:
        """Human readable identifier used in logs and error messages."""
        if self.job_name and self.build_number is not None:
            return f"{self.job_name} #{self.build_number}"
        return self.name or self.id

    def is_terminal(self) -> bool:
        """Return True when the pipeline reached a final status."""
        return self.status in TERMINAL_STATUSES

    def is_successful(self) -> bool:
        """Return True when the pipeline finished successfully."""
        return self.status == "success"

    def update_status(self, status: PipelineStatus) -> None:
        """Record the latest observed status."""
        self.status = status
