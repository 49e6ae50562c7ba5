"""Pydantic models for Bitbucket Cloud API responses."""

from pydantic import BaseModel


class CommitRef(BaseModel):
    """A commit hash reference."""

    hash: str


class Branch(BaseModel):
    """A repository branch."""

    name: str
    target: CommitRef


class Link(BaseModel):
    """A hypermedia link."""

    href: str


class PullRequestLinks(BaseModel):
    """Links of a pull request."""

    html: Link


class PullRequest(BaseModel):
    """A pull request."""

    id: int
    state: str
    links: PullRequestLinks
    merge_commit: CommitRef | None = None
