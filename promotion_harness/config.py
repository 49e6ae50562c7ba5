"""Per-run component context and workflow settings."""

from dataclasses import dataclass

from pydantic import Field

from promotion_harness.models.base import Model
from promotion_harness.retry import RetryPolicy


@dataclass(frozen=True, kw_only=True)
class ComponentContext:
    """Identity of the component under test, shared by every provider.

    The GitOps repository of a component is named ``<name>-gitops`` and holds
    one overlay per environment.
    """

    name: str
    default_branch: str = "main"
    sample_change_path: str = "README.md"

    @property
    def source_repo_name(self) -> str:
        return self.name

    @property
    def gitops_repo_name(self) -> str:
        return f"{self.name}-gitops"

    def application_name(self, environment: str) -> str:
        """Name of the CD application deploying this component."""
        return f"{self.name}-{environment}"


def default_discovery_policy() -> RetryPolicy:
    return RetryPolicy(retries=5, min_timeout=10, max_timeout=30)


def default_http_policy() -> RetryPolicy:
    return RetryPolicy(retries=3, min_timeout=1, max_timeout=10)


class WorkflowSettings(Model):
    """Timing budgets for the promotion workflow."""

    discovery_retry: RetryPolicy = Field(default_factory=default_discovery_policy)
    pipeline_timeout: float = 600
    poll_interval: float = 5
    sync_retries: int = 12
    sync_delay: float = 10
    drain_retry: RetryPolicy = Field(
        default_factory=lambda: RetryPolicy(retries=20, min_timeout=10, max_timeout=30)
    )
    verify_sbom: bool = True
