"""Configuration for GitHub Git provider."""

from pydantic import AliasChoices, BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class GitHubConfig(BaseModel):
    """Configuration for GitHub Git provider."""

    token: SecretStr
    owner: str = Field(validation_alias=AliasChoices("owner", "organization"))
    api_base_url: str = "https://api.github.com"
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)
