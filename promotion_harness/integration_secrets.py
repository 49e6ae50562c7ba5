"""Integration secrets read from the Kubernetes API."""

import base64
import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp
from pydantic import BaseModel, Field, SecretStr

from promotion_harness.config import default_http_policy
from promotion_harness.errors import NotFoundError
from promotion_harness.providers.http import request_json
from promotion_harness.retry import RetryPolicy

log = logging.getLogger(__name__)

DEFAULT_SECRET_NAMESPACE = "tssc"


class KubernetesConfig(BaseModel):
    """Access to the cluster holding the platform integration secrets."""

    api_server_url: str
    token: SecretStr
    verify_ssl: bool = True
    http_retry: RetryPolicy = Field(default_factory=default_http_policy)


@dataclass(frozen=True, kw_only=True)
class KubernetesSecretSource:
    """Reads and decodes Kubernetes secrets."""

    config: KubernetesConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: KubernetesConfig
    ) -> AsyncGenerator["KubernetesSecretSource", None]:
        """Create secret source with managed session lifecycle."""
        headers = {"Authorization": f"Bearer {config.token.get_secret_value()}"}
        async with aiohttp.ClientSession(
            base_url=config.api_server_url,
            headers=headers,
            connector=aiohttp.TCPConnector(ssl=config.verify_ssl),
        ) as session:
            yield cls(config=config, session=session)

    async def get_secret(
        self, name: str, namespace: str = DEFAULT_SECRET_NAMESPACE
    ) -> Mapping[str, str] | None:
        """Return the decoded data of a secret, or None if it does not exist."""
        try:
            data = await request_json(
                self.session,
                "GET",
                f"/api/v1/namespaces/{namespace}/secrets/{name}",
                action=f"get secret {namespace}/{name}",
                policy=self.config.http_retry,
            )
        except NotFoundError:
            log.warning("Secret %s/%s not found", namespace, name)
            return None

        return {
            key: base64.b64decode(value).decode("utf-8")
            for key, value in (data.get("data") or {}).items()
        }
