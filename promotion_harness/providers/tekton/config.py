"""Configuration for Tekton provider."""

from pydantic import BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class TektonConfig(BaseModel):
    """Configuration for Tekton provider.

    PipelineRuns are read from the Kubernetes API of the cluster running
    Pipelines as Code.
    """

    api_server_url: str
    token: SecretStr
    namespace: str = "tssc-app-ci"
    verify_ssl: bool = True
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)
