"""Configuration for Jenkins provider."""

from pydantic import AliasChoices, BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class JenkinsConfig(BaseModel):
    """Configuration for Jenkins provider.

    Jobs live in a folder named after the component unless ``folder`` is set.
    """

    base_url: str = Field(validation_alias=AliasChoices("base_url", "baseUrl"))
    username: str
    token: SecretStr
    folder: str | None = None
    max_builds: int = 50
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)
