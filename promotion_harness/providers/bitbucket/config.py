"""Configuration for Bitbucket Git provider."""

from pydantic import AliasChoices, BaseModel, Field, SecretStr, model_validator

from promotion_harness.config import default_http_policy
from promotion_harness.retry import RetryPolicy


class BitbucketConfig(BaseModel):
    """Configuration for Bitbucket Git provider.

    Authenticates with an access token, or with a username and app password.
    """

    workspace: str
    token: SecretStr | None = None
    username: str | None = None
    app_password: SecretStr | None = Field(
        default=None, validation_alias=AliasChoices("app_password", "appPassword")
    )
    api_base_url: str = "https://api.bitbucket.org/2.0/"
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)

    @model_validator(mode="after")
    def check_credentials(self) -> "BitbucketConfig":
        if self.token is None and (self.username is None or self.app_password is None):
            raise ValueError("Either token or username and app_password is required")
        return self
