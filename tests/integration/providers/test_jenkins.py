"""Integration tests for Jenkins provider."""

import re
from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from promotion_harness.config import ComponentContext
from promotion_harness.models.git import PullRequest
from promotion_harness.providers.jenkins import JenkinsConfig, JenkinsProvider
from promotion_harness.testing.factories import instant_policy
from promotion_harness.testing.jenkins.payloads import build, job

BASE_URL = "http://jenkins.test"
JOB_URL = f"{BASE_URL}/job/my-app/job/my-app"
BUILDS_PATTERN = re.compile(rf"{re.escape(JOB_URL)}/api/json\?.*")
GITOPS_BUILDS_PATTERN = re.compile(
    rf"{re.escape(BASE_URL)}/job/my-app/job/my-app-gitops/api/json\?.*"
)


@pytest.fixture
def config() -> JenkinsConfig:
    """Create test configuration."""
    return JenkinsConfig(
        base_url=BASE_URL,
        username="admin",
        token=SecretStr("jenkins-token"),
        http_retry=instant_policy(2),
    )


@pytest.fixture
async def provider(
    config: JenkinsConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[JenkinsProvider, None]:
    """Create provider with managed session."""
    async with JenkinsProvider.from_config(
        config, ComponentContext(name="my-app")
    ) as impl:
        yield impl


def test_capabilities() -> None:
    """Binds builds to commits and does not build pull requests."""
    assert JenkinsProvider.uses_event_type is False
    assert JenkinsProvider.supports_pull_request_triggers is False
    assert JenkinsProvider.initial_run_policy == "cancel"


class TestListPipelineRuns:
    """Tests for list_pipeline_runs."""

    async def test_maps_builds(
        self, provider: JenkinsProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Maps builds with their git revision, trigger and status."""
        aioresponses.get(
            BUILDS_PATTERN,
            payload=job(
                build(number=13, building=True, result=None),
                build(number=12, result="UNSTABLE"),
                build(number=11, result="ABORTED"),
            ),
        )

        runs = await provider.list_pipeline_runs("my-app")

        assert [(r.id, r.status, r.event_type) for r in runs] == [
            ("my-app-13", "running", "push"),
            ("my-app-12", "failure", "push"),
            ("my-app-11", "failure", "push"),
        ]
        assert runs[0].name == "my-app #13"
        assert runs[0].branch == "main"
        assert runs[0].sha == "abc123def456"

    async def test_filters_by_sha_client_side(
        self, provider: JenkinsProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Keeps only builds of the requested commit."""
        aioresponses.get(
            BUILDS_PATTERN,
            payload=job(
                build(number=2, sha="fff000"),
                build(number=1, sha="abc123def456"),
                build(number=0, sha=None),
            ),
        )

        runs = await provider.list_pipeline_runs("my-app", sha="abc123def456")

        assert [r.id for r in runs] == ["my-app-1"]


async def test_get_pipeline_tracks_job_and_build_number(
    provider: JenkinsProvider, aioresponses: aioresponses_cls
) -> None:
    """Discovers the build of a commit regardless of the requested event."""
    aioresponses.get(BUILDS_PATTERN, payload=job(build(number=12)))
    reference = PullRequest.for_commit("abc123def456", "my-app")

    pipeline = await provider.get_pipeline(reference, event_type="pull_request")

    assert pipeline is not None
    assert pipeline.job_name == "my-app"
    assert pipeline.build_number == 12
    assert pipeline.display_name == "my-app #12"


async def test_check_pipeline_status(
    provider: JenkinsProvider, aioresponses: aioresponses_cls
) -> None:
    """Reports a build in progress as running."""
    aioresponses.get(BUILDS_PATTERN, payload=job(build(number=12)))
    aioresponses.get(
        re.compile(rf"{re.escape(JOB_URL)}/12/api/json\?.*"),
        payload=build(number=12, building=True, result=None),
    )
    pipeline = await provider.get_pipeline(
        PullRequest.for_commit("abc123def456", "my-app")
    )
    assert pipeline is not None

    assert await provider.check_pipeline_status(pipeline) == "running"


async def test_get_pipeline_logs(
    provider: JenkinsProvider, aioresponses: aioresponses_cls
) -> None:
    """Returns the console text of the build."""
    aioresponses.get(BUILDS_PATTERN, payload=job(build(number=12)))
    aioresponses.get(f"{JOB_URL}/12/consoleText", body="Finished: FAILURE")
    pipeline = await provider.get_pipeline(
        PullRequest.for_commit("abc123def456", "my-app")
    )
    assert pipeline is not None

    assert await provider.get_pipeline_logs(pipeline) == "Finished: FAILURE"


async def test_cancel_all_stops_running_builds(
    provider: JenkinsProvider, aioresponses: aioresponses_cls
) -> None:
    """Stops running builds and accepts the redirect Jenkins answers with."""
    aioresponses.get(
        BUILDS_PATTERN,
        payload=job(build(number=13, building=True, result=None), build(number=12)),
    )
    aioresponses.get(GITOPS_BUILDS_PATTERN, payload=job())
    stop_url = f"{JOB_URL}/13/stop"
    aioresponses.post(stop_url, status=302, headers={"Location": f"{JOB_URL}/13/"})

    result = await provider.cancel_all_pipelines()

    assert result.total == 2
    assert result.cancelled == 1
    assert result.filtered == 1
    assert not result.errors
    assert len(aioresponses.requests[("POST", URL(stop_url))]) == 1
