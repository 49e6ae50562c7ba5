"""Trusted Profile Analyzer SBOM search client."""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from promotion_harness.errors import (
    NotFoundError,
    ProviderConnectionError,
    ProviderRequestError,
)
from promotion_harness.providers.http import TRANSIENT_STATUSES, check_response
from promotion_harness.providers.tpa.config import TPAConfig
from promotion_harness.providers.tpa.models import (
    SBOMResult,
    SearchResponse,
    TokenResponse,
)
from promotion_harness.retry import Continue, Outcome, Stop, Success, retry

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class TPAClient:
    """Searches SBOMs with an OIDC client-credentials token.

    The token is obtained lazily and refreshed after a 401 response.
    """

    config: TPAConfig
    session: aiohttp.ClientSession = field(repr=False)
    token: str | None = field(default=None, repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(cls, config: TPAConfig) -> AsyncGenerator["TPAClient", None]:
        """Create client with managed session lifecycle."""
        async with aiohttp.ClientSession(headers={"Accept": "*/*"}) as session:
            yield cls(config=config, session=session)

    async def get_access_token(self) -> str:
        """Request a token from the OIDC issuer."""
        url = f"{self.config.oidc_issuer_url}/protocol/openid-connect/token"
        form = {
            "client_id": self.config.oidc_client_id,
            "client_secret": self.config.oidc_client_secret.get_secret_value(),
            "grant_type": "client_credentials",
        }
        async with self.session.post(url, data=form) as response:
            await check_response(response, "get TPA access token")
            data = await response.json(content_type=None)

        self.token = TokenResponse.model_validate(data).access_token
        return self.token

    async def find_sboms_by_name(self, name: str) -> Sequence[SBOMResult]:
        """Return SBOMs matching a name, newest first.

        An empty name lists every SBOM. A 404 means no results.

        Raises:
            ProviderConnectionError: Transient failures persisted
            ProviderRequestError: The API rejected the search

        """
        policy = self.config.search_retry

        async def attempt() -> Outcome[Sequence[SBOMResult]]:
            try:
                items = await self._fetch_all(name)
            except NotFoundError:
                log.info("No SBOMs found for '%s'", name)
                return Success(())
            except ProviderRequestError as e:
                if e.status == 401:
                    self.token = None
                    return Continue(e)
                if e.status in TRANSIENT_STATUSES:
                    return Continue(e)
                return Stop(e)
            except aiohttp.ClientError as e:
                return Continue(e)
            return Success(sorted(items, key=lambda sbom: sbom.published, reverse=True))

        def on_retry(error: BaseException, attempt_number: int) -> None:
            log.warning(
                "SBOM search for '%s' failed (attempt %d/%d): %s",
                name,
                attempt_number,
                policy.max_attempts,
                error,
            )

        try:
            results = await retry(attempt, policy, on_retry=on_retry)
        except ProviderRequestError as e:
            if e.status != 401 and e.status not in TRANSIENT_STATUSES:
                raise
            raise ProviderConnectionError(
                f"All {policy.max_attempts} attempts to find SBOMs for '{name}' "
                f"have failed: {e}",
                attempts=policy.max_attempts,
            ) from e
        except aiohttp.ClientError as e:
            raise ProviderConnectionError(
                f"All {policy.max_attempts} attempts to find SBOMs for '{name}' "
                f"have failed: {e}",
                attempts=policy.max_attempts,
            ) from e

        log.info("SBOM search for '%s' found %d result(s)", name, len(results))
        return results

    async def search_sbom_by_sha256(self, digest: str) -> SBOMResult | None:
        """Find the SBOM describing an image digest."""
        if not digest:
            raise ValueError("SHA256 digest cannot be empty")
        for sbom in await self.find_sboms_by_name(""):
            if sbom.describes(digest):
                return sbom
        log.info("No SBOM found with SHA256 %s", digest)
        return None

    async def search_sbom_by_name_and_doc_id(
        self, name: str, document_id: str
    ) -> SBOMResult | None:
        """Find an SBOM by name and document id.

        Raises:
            NotFoundError: No SBOM has the name at all

        """
        sboms = await self.find_sboms_by_name(name)
        if not sboms:
            raise NotFoundError(f"SBOM with name {name} not found")
        for sbom in sboms:
            if sbom.document_id == document_id:
                return sbom
        log.info("No SBOM named %s with document id %s", name, document_id)
        return None

    async def _fetch_all(self, name: str) -> list[SBOMResult]:
        token = self.token or await self.get_access_token()
        url = f"{self.config.bombastic_api_url}/api/v2/sbom"
        items: list[SBOMResult] = []
        offset = 0

        while True:
            params = {"limit": str(self.config.page_size), "offset": str(offset)}
            if name:
                params["q"] = name

            async with self.session.get(
                url, params=params, headers={"Authorization": f"Bearer {token}"}
            ) as response:
                await check_response(response, "search SBOMs")
                data = await response.json(content_type=None)

            page = SearchResponse.model_validate(data)
            items.extend(page.items)

            if len(page.items) < self.config.page_size:
                return items

            offset += self.config.page_size
