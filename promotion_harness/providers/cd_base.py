"""Abstract base class for continuous-delivery providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from promotion_harness.config import ComponentContext
from promotion_harness.models.cd import Application, SyncResult
from promotion_harness.models.git import Environment


@dataclass(frozen=True, kw_only=True)
class CDProvider(ABC):
    """Abstract base for CD providers deploying one application per environment."""

    context: ComponentContext

    @abstractmethod
    async def get_application(self, environment: Environment) -> Application | None:
        """Return the application of an environment, or None if it is missing."""

    @abstractmethod
    async def sync_application(self, environment: Environment) -> None:
        """Request a sync of the application of an environment."""

    @abstractmethod
    async def wait_until_application_is_synced(
        self,
        environment: Environment,
        revision: str,
        max_retries: int = 12,
        delay: float = 10,
    ) -> SyncResult:
        """Wait until the application runs a revision and is healthy.

        Returns:
            A result with synced=False and the last observed state when the
            retries run out

        """
