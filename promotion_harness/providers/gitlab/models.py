"""Pydantic models for GitLab REST API responses."""

from pydantic import BaseModel


class BranchCommit(BaseModel):
    """Head commit of a branch."""

    id: str


class Branch(BaseModel):
    """A repository branch."""

    name: str
    commit: BranchCommit


class Commit(BaseModel):
    """A created commit."""

    id: str


class MergeRequest(BaseModel):
    """A merge request."""

    iid: int
    sha: str
    web_url: str
    state: str
    merge_commit_sha: str | None = None
