"""Configuration for GitLab Git provider."""

from pydantic import BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class GitLabConfig(BaseModel):
    """Configuration for GitLab Git provider."""

    token: SecretStr
    group: str
    host: str = "gitlab.com"
    api_base_url: str | None = None
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)

    @property
    def base_url(self) -> str:
        return self.api_base_url or f"https://{self.host}/api/v4/"
