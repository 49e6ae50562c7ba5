"""Models for continuous-delivery application state."""

from promotion_harness.models.base import Model


class Application(Model):
    """Deployment state of a CD application."""

    name: str
    sync_status: str | None = None
    health_status: str | None = None
    revision: str | None = None
    operation_phase: str | None = None
    message: str | None = None


class SyncResult(Model):
    """Outcome of waiting for an application to sync a revision."""

    synced: bool
    status: str
    message: str
