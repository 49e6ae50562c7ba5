"""Pydantic models for Azure DevOps API responses."""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

type BuildStatus = Literal[
    "none", "notStarted", "inProgress", "cancelling", "postponed", "completed", "all"
]

type BuildResult = Literal[
    "none", "succeeded", "partiallySucceeded", "failed", "canceled"
]


class BuildDefinition(BaseModel):
    """A build definition reference."""

    id: int
    name: str


class BuildDefinitionsResponse(BaseModel):
    """Response from list build definitions API."""

    value: Sequence[BuildDefinition]


class Build(BaseModel):
    """A build (pipeline run) from Azure DevOps API."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    build_number: str = Field(alias="buildNumber")
    status: BuildStatus
    result: BuildResult | None = None
    reason: str
    source_version: str | None = Field(default=None, alias="sourceVersion")
    source_branch: str | None = Field(default=None, alias="sourceBranch")
    last_changed_date: datetime | None = Field(default=None, alias="lastChangedDate")
    trigger_info: Mapping[str, str] = Field(default_factory=dict, alias="triggerInfo")
    links: Mapping[str, Any] = Field(default_factory=dict, alias="_links")

    @property
    def native_status(self) -> str:
        """Result of a completed build, otherwise its status."""
        if self.status == "completed" and self.result is not None:
            return self.result
        return self.status

    @property
    def commit_sha(self) -> str | None:
        """Head commit of the change; pull request builds report the PR head."""
        return self.trigger_info.get("pr.sourceSha") or self.source_version

    @property
    def web_url(self) -> str | None:
        web = self.links.get("web")
        return web.get("href") if isinstance(web, Mapping) else None


class BuildsResponse(BaseModel):
    """Response from list builds API."""

    value: Sequence[Build]


class BuildLog(BaseModel):
    """A log reference of a build."""

    id: int


class BuildLogsResponse(BaseModel):
    """Response from list build logs API."""

    value: Sequence[BuildLog]
