"""Pydantic models for Jenkins JSON API responses."""

from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PULL_REQUEST_MARKERS = ("pullrequest", "pull-request", "pull_request")
PULL_REQUEST_PARAMETERS = frozenset(
    ["CHANGE_ID", "ghprbPullId", "gitlabMergeRequestIid", "BITBUCKET_PULL_REQUEST_ID"]
)
PUSH_CAUSE_CLASSES = ("GitHubPushCause", "GitLabWebHookCause", "BitBucketPushCause")


class Build(BaseModel):
    """A build of a Jenkins job."""

    model_config = ConfigDict(extra="ignore")

    number: int
    url: str
    building: bool = False
    result: str | None = None
    timestamp: int = 0
    duration: int = 0
    actions: Sequence[Mapping[str, Any] | None] = Field(default_factory=tuple)

    @property
    def native_status(self) -> str:
        """Return "building" while running, otherwise the build result."""
        if self.building:
            return "building"
        return self.result or "not_built"

    @property
    def updated_at(self) -> datetime:
        started = datetime.fromtimestamp(self.timestamp / 1000, timezone.utc)
        return started + timedelta(milliseconds=self.duration)

    def _actions(self) -> list[Mapping[str, Any]]:
        return [action for action in self.actions if action]

    @property
    def revision(self) -> Mapping[str, Any] | None:
        """Last built git revision recorded by the git plugin."""
        for action in self._actions():
            if revision := action.get("lastBuiltRevision"):
                return revision
        return None

    @property
    def commit_sha(self) -> str | None:
        if (revision := self.revision) is not None:
            return revision.get("SHA1")
        for action in self._actions():
            for branch_build in (action.get("buildsByBranchName") or {}).values():
                if sha := (branch_build.get("revision") or {}).get("SHA1"):
                    return sha
        return None

    @property
    def branch(self) -> str | None:
        if (revision := self.revision) is None:
            return None
        branches = revision.get("branch") or []
        if not branches:
            return None
        return str(branches[0].get("name", "")).removeprefix("refs/remotes/origin/")

    @property
    def trigger(self) -> str | None:
        """Classify the build trigger as "pull_request" or "push".

        Pull request actions or parameters win, then build causes, then the
        presence of git information implies a push.
        """
        for action in self._actions():
            action_class = str(action.get("_class", "")).lower()
            if any(marker in action_class for marker in PULL_REQUEST_MARKERS):
                return "pull_request"
            parameters = action.get("parameters") or []
            if any(p.get("name") in PULL_REQUEST_PARAMETERS for p in parameters):
                return "pull_request"

        for action in self._actions():
            for cause in action.get("causes") or []:
                description = str(cause.get("shortDescription", "")).lower()
                cause_class = str(cause.get("_class", ""))
                if "pull request" in description or "merge request" in description:
                    return "pull_request"
                if "push" in description or cause_class.endswith(PUSH_CAUSE_CLASSES):
                    return "push"

        if self.commit_sha is not None:
            return "push"
        return None


class Job(BaseModel):
    """A Jenkins job with its recent builds."""

    builds: Sequence[Build] = ()
