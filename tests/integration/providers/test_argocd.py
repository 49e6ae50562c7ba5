"""Integration tests for Argo CD provider."""

import re
from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from promotion_harness.config import ComponentContext
from promotion_harness.errors import PreconditionError
from promotion_harness.providers.argocd import ArgoCDConfig, ArgoCDProvider
from promotion_harness.testing.argocd.payloads import application
from promotion_harness.testing.factories import instant_policy

API_BASE_URL = "http://argocd.test"
APP_URL = f"{API_BASE_URL}/api/v1/applications/my-app-development"
APP_PATTERN = re.compile(rf"{re.escape(APP_URL)}\?appNamespace=tssc-gitops")


@pytest.fixture
def config() -> ArgoCDConfig:
    """Create test configuration."""
    return ArgoCDConfig(
        api_base_url=API_BASE_URL,
        token=SecretStr("argocd-token"),
        http_retry=instant_policy(1),
    )


@pytest.fixture
async def provider(
    config: ArgoCDConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[ArgoCDProvider, None]:
    """Create provider with managed session."""
    async with ArgoCDProvider.from_config(
        config, ComponentContext(name="my-app")
    ) as impl:
        yield impl


class TestGetApplication:
    """Tests for get_application."""

    async def test_maps_application_state(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Maps sync, health, revision and operation message."""
        aioresponses.get(
            APP_PATTERN,
            payload=application(
                sync_status="OutOfSync",
                health_status="Progressing",
                operation_message="waiting for healthy state",
            ),
        )

        app = await provider.get_application("development")

        assert app is not None
        assert app.name == "my-app-development"
        assert app.sync_status == "OutOfSync"
        assert app.health_status == "Progressing"
        assert app.revision == "abc1234"
        assert app.operation_phase == "Running"
        assert app.message == "waiting for healthy state"

    async def test_missing_application(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Returns None when the application does not exist."""
        aioresponses.get(APP_PATTERN, status=404, payload={"error": "not found"})

        assert await provider.get_application("development") is None


class TestSyncApplication:
    """Tests for sync_application."""

    async def test_triggers_sync(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Posts a sync request for the environment's application."""
        sync_url = f"{APP_URL}/sync"
        aioresponses.post(sync_url, payload=application())

        await provider.sync_application("development")

        [call] = aioresponses.requests[("POST", URL(sync_url))]
        assert call.kwargs["json"]["appNamespace"] == "tssc-gitops"

    async def test_missing_application_is_precondition_error(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Raises PreconditionError when there is nothing to sync."""
        aioresponses.post(f"{APP_URL}/sync", status=404, body="not found")

        with pytest.raises(PreconditionError, match="my-app-development"):
            await provider.sync_application("development")


class TestWaitUntilApplicationIsSynced:
    """Tests for wait_until_application_is_synced."""

    async def test_syncs_after_transient_states(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Treats OutOfSync as transient until the revision is healthy."""
        aioresponses.get(APP_PATTERN, payload=application(sync_status="OutOfSync"))
        aioresponses.get(APP_PATTERN, payload=application(sync_status="OutOfSync"))
        aioresponses.get(APP_PATTERN, payload=application())

        result = await provider.wait_until_application_is_synced(
            "development", "abc1234", max_retries=3, delay=0
        )

        assert result.synced is True
        assert result.status == "Synced"
        assert "abc1234" in result.message

    async def test_wrong_revision_exhausts_attempts(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Reports the last observed state when the revision never arrives."""
        aioresponses.get(
            APP_PATTERN, payload=application(revision="0ld0000"), repeat=True
        )

        result = await provider.wait_until_application_is_synced(
            "development", "abc1234", max_retries=2, delay=0
        )

        assert result.synced is False
        assert result.status == "Synced"
        assert "after 3 attempts" in result.message
        assert "revision=0ld0000" in result.message

    @pytest.mark.parametrize(
        ("payload", "detail"),
        [
            (application(sync_status="SyncFailed"), "sync=SyncFailed"),
            (application(health_status="Degraded"), "health=Degraded"),
            (
                application(
                    sync_status="OutOfSync",
                    operation_message="one or more objects failed to apply",
                    operation_phase="Failed",
                ),
                "failed to apply",
            ),
            (
                application(
                    sync_status="OutOfSync",
                    operation_message="ComparisonError",
                    operation_phase="Error",
                ),
                "ComparisonError",
            ),
        ],
    )
    async def test_failed_sync_stops_polling(
        self,
        provider: ArgoCDProvider,
        aioresponses: aioresponses_cls,
        payload: dict[str, object],
        detail: str,
    ) -> None:
        """Returns an unsynced result after a single poll on a failed sync."""
        aioresponses.get(APP_PATTERN, payload=payload, repeat=True)

        result = await provider.wait_until_application_is_synced(
            "development", "abc1234", max_retries=5, delay=0
        )

        assert result.synced is False
        assert "failed to sync revision abc1234" in result.message
        assert detail in result.message
        [calls] = aioresponses.requests.values()
        assert len(calls) == 1

    async def test_degraded_previous_revision_is_transient(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Keeps polling while the degraded state belongs to an older revision."""
        aioresponses.get(
            APP_PATTERN,
            payload=application(health_status="Degraded", revision="0ld0000"),
        )
        aioresponses.get(APP_PATTERN, payload=application())

        result = await provider.wait_until_application_is_synced(
            "development", "abc1234", max_retries=3, delay=0
        )

        assert result.synced is True

    async def test_missing_application_is_precondition_error(
        self, provider: ArgoCDProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Stops polling when the application does not exist."""
        aioresponses.get(APP_PATTERN, status=404, body="not found", repeat=True)

        with pytest.raises(PreconditionError):
            await provider.wait_until_application_is_synced(
                "development", "abc1234", max_retries=5, delay=0
            )

        [calls] = aioresponses.requests.values()
        assert len(calls) == 1
