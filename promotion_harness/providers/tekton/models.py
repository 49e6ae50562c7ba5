"""Pydantic models for Tekton PipelineRun resources."""

from collections.abc import Mapping, Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

REPOSITORY_LABEL = "pipelinesascode.tekton.dev/url-repository"
SHA_LABEL = "pipelinesascode.tekton.dev/sha"
STATE_LABEL = "pipelinesascode.tekton.dev/state"
EVENT_ANNOTATION = "pipelinesascode.tekton.dev/on-event"
BRANCH_ANNOTATION = "pipelinesascode.tekton.dev/source-branch"
LOG_URL_ANNOTATION = "pipelinesascode.tekton.dev/log-url"

CANCELLED_REASONS: frozenset[str] = frozenset(
    ["Cancelled", "PipelineRunCancelled", "StoppedRunFinally", "CancelledRunFinally"]
)


class ObjectMeta(BaseModel):
    """Kubernetes object metadata."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    namespace: str | None = None
    labels: Mapping[str, str] = Field(default_factory=dict)
    annotations: Mapping[str, str] = Field(default_factory=dict)
    creation_timestamp: datetime | None = Field(default=None, alias="creationTimestamp")


class Condition(BaseModel):
    """A status condition."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    status: str
    reason: str | None = None
    message: str | None = None
    last_transition_time: datetime | None = Field(
        default=None, alias="lastTransitionTime"
    )


class PipelineRunStatus(BaseModel):
    """Status block of a PipelineRun."""

    model_config = ConfigDict(populate_by_name=True)

    conditions: Sequence[Condition] = ()
    start_time: datetime | None = Field(default=None, alias="startTime")
    completion_time: datetime | None = Field(default=None, alias="completionTime")


class PipelineRun(BaseModel):
    """A Tekton PipelineRun."""

    metadata: ObjectMeta
    status: PipelineRunStatus = Field(default_factory=PipelineRunStatus)

    @property
    def native_status(self) -> str:
        """Status token derived from the first condition.

        Returns "succeeded", "failed", "cancelled", or the lower-cased reason
        of a run that is still in progress.
        """
        if not self.status.conditions:
            return "pending"
        condition = self.status.conditions[0]
        if condition.status == "True":
            return "succeeded"
        if condition.status == "False":
            if condition.reason in CANCELLED_REASONS:
                return "cancelled"
            return "failed"
        return (condition.reason or "unknown").lower()

    @property
    def updated_at(self) -> datetime | None:
        """Completion time, else the latest condition transition, else creation."""
        if self.status.completion_time is not None:
            return self.status.completion_time
        transitions = [
            c.last_transition_time
            for c in self.status.conditions
            if c.last_transition_time is not None
        ]
        if transitions:
            return max(transitions)
        return self.metadata.creation_timestamp


class PipelineRunList(BaseModel):
    """A list of PipelineRuns."""

    items: Sequence[PipelineRun]


class Container(BaseModel):
    """A pod container."""

    name: str


class PodSpec(BaseModel):
    """Pod spec with its containers."""

    containers: Sequence[Container] = ()


class Pod(BaseModel):
    """A pod running a TaskRun."""

    metadata: ObjectMeta
    spec: PodSpec = Field(default_factory=PodSpec)


class PodList(BaseModel):
    """A list of pods."""

    items: Sequence[Pod]
