"""Configuration for Azure DevOps provider."""

from pydantic import BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class AzureDevOpsConfig(BaseModel):
    """Configuration for Azure DevOps provider.

    Build definitions are expected to be named after the repository they
    build.
    """

    token: SecretStr
    organization: str
    project: str
    host: str = "dev.azure.com"
    api_base_url: str | None = None
    api_version: str = "7.1"
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)

    @property
    def base_url(self) -> str:
        return self.api_base_url or f"https://{self.host}"
