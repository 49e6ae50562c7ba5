"""Pydantic models for Argo CD API responses."""

from pydantic import BaseModel, ConfigDict, Field


class ApplicationMetadata(BaseModel):
    """Application metadata."""

    name: str
    namespace: str | None = None


class SyncStatus(BaseModel):
    """Sync state of an application."""

    status: str | None = None
    revision: str | None = None


class HealthStatus(BaseModel):
    """Health state of an application."""

    status: str | None = None
    message: str | None = None


class OperationState(BaseModel):
    """State of the last sync operation."""

    phase: str | None = None
    message: str | None = None


class ApplicationStatus(BaseModel):
    """Status block of an application."""

    model_config = ConfigDict(populate_by_name=True)

    sync: SyncStatus = Field(default_factory=SyncStatus)
    health: HealthStatus = Field(default_factory=HealthStatus)
    operation_state: OperationState | None = Field(
        default=None, alias="operationState"
    )


class Application(BaseModel):
    """An Argo CD application."""

    metadata: ApplicationMetadata
    status: ApplicationStatus = Field(default_factory=ApplicationStatus)
