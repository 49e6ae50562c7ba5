"""Configuration for GitHub Actions provider."""

from pydantic import BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class GitHubActionsConfig(BaseModel):
    """Configuration for GitHub Actions provider."""

    token: SecretStr
    owner: str
    api_base_url: str = "https://api.github.com"
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)
