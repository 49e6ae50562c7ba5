"""Pydantic models for Trusted Profile Analyzer API responses."""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SBOMComponent(BaseModel):
    """A component an SBOM describes."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    version: str = ""
    group: str | None = None
    purl: Sequence[str] = ()


class SBOMResult(BaseModel):
    """An SBOM search hit."""

    model_config = ConfigDict(extra="ignore")

    id: str
    document_id: str
    name: str
    published: datetime
    sha256: str | None = None
    described_by: Sequence[SBOMComponent] = ()

    def describes(self, digest: str) -> bool:
        """Return True when a described component version contains the digest."""
        return any(digest in component.version for component in self.described_by)


class SearchResponse(BaseModel):
    """A page of SBOM search results."""

    total: int = 0
    items: Sequence[SBOMResult] = ()


class TokenResponse(BaseModel):
    """OIDC token endpoint response."""

    access_token: str
