"""Pydantic models for GitHub REST API responses."""

from pydantic import BaseModel


class GitObject(BaseModel):
    """Object a git reference points at."""

    sha: str


class Ref(BaseModel):
    """A git reference."""

    ref: str
    object: GitObject


class FileContent(BaseModel):
    """A file from the contents API."""

    path: str
    sha: str
    content: str
    encoding: str = "base64"


class Commit(BaseModel):
    """Commit reference returned when writing contents."""

    sha: str


class ContentUpdate(BaseModel):
    """Response of a contents update."""

    commit: Commit


class PullRequestHead(BaseModel):
    """Head of a pull request."""

    ref: str
    sha: str


class PullRequest(BaseModel):
    """A pull request."""

    number: int
    html_url: str
    head: PullRequestHead


class MergeResult(BaseModel):
    """Response of the merge pull request API."""

    sha: str
    merged: bool
