"""Configuration for Argo CD provider."""

from pydantic import BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class ArgoCDConfig(BaseModel):
    """Configuration for Argo CD provider."""

    api_base_url: str
    token: SecretStr
    namespace: str = "tssc-gitops"
    verify_ssl: bool = True
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)
