"""Argo CD provider implementation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from promotion_harness.config import ComponentContext
from promotion_harness.errors import NotFoundError, PreconditionError, PromotionError
from promotion_harness.models.cd import Application, SyncResult
from promotion_harness.models.git import Environment
from promotion_harness.providers.argocd.config import ArgoCDConfig
from promotion_harness.providers.argocd.models import (
    Application as ArgoApplication,
)
from promotion_harness.providers.cd_base import CDProvider
from promotion_harness.providers.http import NO_RETRY, request_json
from promotion_harness.retry import Continue, Outcome, RetryPolicy, Stop, Success, retry

log = logging.getLogger(__name__)

SYNCED = "Synced"
HEALTHY = "Healthy"
DEGRADED = "Degraded"
SYNC_FAILED = "SyncFailed"
FAILED_PHASES = frozenset(["Failed", "Error"])


@dataclass(frozen=True, kw_only=True)
class ArgoCDProvider(CDProvider):
    """Argo CD provider; each environment is an application ``<component>-<env>``."""

    config: ArgoCDConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ArgoCDConfig, context: ComponentContext
    ) -> AsyncGenerator["ArgoCDProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {"Authorization": f"Bearer {config.token.get_secret_value()}"}
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
            connector=aiohttp.TCPConnector(ssl=config.verify_ssl),
        ) as session:
            yield cls(config=config, context=context, session=session)

    def application_url(self, environment: Environment) -> str:
        return f"/api/v1/applications/{self.context.application_name(environment)}"

    async def get_application(self, environment: Environment) -> Application | None:
        try:
            data = await request_json(
                self.session,
                "GET",
                self.application_url(environment),
                action="get application",
                policy=self.config.http_retry,
                params={"appNamespace": self.config.namespace},
            )
        except NotFoundError:
            log.info(
                "Application %s not found",
                self.context.application_name(environment),
            )
            return None

        application = ArgoApplication.model_validate(data)
        status = application.status
        operation = status.operation_state
        return Application(
            name=application.metadata.name,
            sync_status=status.sync.status,
            health_status=status.health.status,
            revision=status.sync.revision,
            operation_phase=operation.phase if operation else None,
            message=operation.message if operation else None,
        )

    async def sync_application(self, environment: Environment) -> None:
        """Trigger a sync of the environment's application.

        Raises:
            PreconditionError: The application does not exist

        """
        name = self.context.application_name(environment)
        try:
            await request_json(
                self.session,
                "POST",
                f"{self.application_url(environment)}/sync",
                action="sync application",
                policy=NO_RETRY,
                json={"appNamespace": self.config.namespace, "prune": False},
            )
        except NotFoundError as e:
            raise PreconditionError(f"Application {name} not found") from e
        log.info("Triggered sync of application %s", name)

    async def wait_until_application_is_synced(
        self,
        environment: Environment,
        revision: str,
        max_retries: int = 12,
        delay: float = 10,
    ) -> SyncResult:
        """Poll the application until it runs the revision synced and healthy.

        OutOfSync, Progressing and a missing revision are treated as transient.
        A failed sync operation, a SyncFailed status or a Degraded revision
        ends the wait at once with an unsynced result.

        Raises:
            PreconditionError: The application does not exist

        """
        name = self.context.application_name(environment)
        policy = RetryPolicy(
            retries=max_retries, min_timeout=delay, max_timeout=delay, factor=1
        )
        last: Application | None = None
        failure: PromotionError | None = None

        async def attempt() -> Outcome[Application]:
            nonlocal last, failure
            application = await self.get_application(environment)
            if application is None:
                return Stop(PreconditionError(f"Application {name} not found"))
            last = application
            if _has_failed(application, revision):
                failure = PromotionError(
                    f"Application {name} failed to sync revision {revision}: "
                    f"{_describe(application)}"
                )
                return Stop(failure)
            if (
                application.revision == revision
                and application.sync_status == SYNCED
                and application.health_status == HEALTHY
            ):
                return Success(application)
            return Continue(
                PromotionError(
                    f"Application {name} not synced to {revision[:7]} yet: "
                    f"{_describe(application)}"
                )
            )

        def on_retry(error: BaseException, attempt_number: int) -> None:
            log.info("%s (attempt %d/%d)", error, attempt_number, policy.max_attempts)

        try:
            application = await retry(attempt, policy, on_retry=on_retry)
        except PromotionError:
            status = last.sync_status if last else None
            if failure is not None:
                log.warning("%s", failure)
                return SyncResult(
                    synced=False, status=status or "Unknown", message=str(failure)
                )
            return SyncResult(
                synced=False,
                status=status or "Unknown",
                message=(
                    f"Application {name} did not sync revision {revision} after "
                    f"{policy.max_attempts} attempts; last state: "
                    f"{_describe(last) if last else 'unavailable'}"
                ),
            )

        log.info("Application %s synced to %s", name, revision[:7])
        return SyncResult(
            synced=True,
            status=application.sync_status or SYNCED,
            message=f"Application {name} synced to revision {revision}",
        )


def _has_failed(application: Application, revision: str) -> bool:
    if application.operation_phase in FAILED_PHASES:
        return True
    if application.sync_status == SYNC_FAILED:
        return True
    return application.revision == revision and application.health_status == DEGRADED


def _describe(application: Application) -> str:
    text = (
        f"sync={application.sync_status}, health={application.health_status}, "
        f"revision={application.revision}"
    )
    if application.message:
        text += f", message={application.message}"
    return text
