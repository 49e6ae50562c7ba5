"""Configuration for the Trusted Profile Analyzer client."""

from pydantic import BaseModel, Field, SecretStr

from promotion_harness.retry import RetryPolicy

SECRET_NAME = "tssc-trustification-integration"


def default_search_policy() -> RetryPolicy:
    return RetryPolicy(
        retries=10, min_timeout=1, max_timeout=15, factor=2, randomize=True
    )


class TPAConfig(BaseModel):
    """Configuration for the Trusted Profile Analyzer client.

    Field names match the keys of the trustification integration secret.
    """

    bombastic_api_url: str
    oidc_issuer_url: str
    oidc_client_id: str
    oidc_client_secret: SecretStr
    page_size: int = 100
    search_retry: RetryPolicy = Field(default_factory=default_search_policy)
