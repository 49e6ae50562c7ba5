"""Integration tests for Bitbucket Git provider."""

import re
from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr, ValidationError
from yarl import URL

from promotion_harness.config import ComponentContext
from promotion_harness.errors import ProviderRequestError
from promotion_harness.models.git import PullRequest
from promotion_harness.providers.bitbucket import BitbucketConfig, BitbucketProvider
from promotion_harness.testing.bitbucket.payloads import branch, pull_request
from promotion_harness.testing.factories import instant_policy

API_BASE_URL = "http://bitbucket.test/2.0/"
SOURCE_URL = f"{API_BASE_URL}repositories/test-workspace/my-app"
GITOPS_URL = f"{API_BASE_URL}repositories/test-workspace/my-app-gitops"
TEST_BRANCH = re.compile(
    rf"{re.escape(SOURCE_URL)}/refs/branches/test-branch-\d+$"
)


@pytest.fixture
def config() -> BitbucketConfig:
    """Create test configuration."""
    return BitbucketConfig(
        token=SecretStr("test-oauth-token"),
        workspace="test-workspace",
        api_base_url=API_BASE_URL,
        http_retry=instant_policy(2),
    )


@pytest.fixture
async def provider(
    config: BitbucketConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[BitbucketProvider, None]:
    """Create provider with managed session."""
    async with BitbucketProvider.from_config(
        config, ComponentContext(name="my-app")
    ) as impl:
        yield impl


def test_config_requires_credentials() -> None:
    """Rejects a config without token or app password."""
    with pytest.raises(ValidationError, match="token or username"):
        BitbucketConfig(workspace="test-workspace", username="user")


def test_config_accepts_app_password() -> None:
    """Accepts username and app password instead of a token."""
    config = BitbucketConfig.model_validate(
        {"workspace": "test-workspace", "username": "user", "appPassword": "pw"}
    )

    assert config.app_password is not None
    assert config.app_password.get_secret_value() == "pw"


async def test_get_branch_sha(
    provider: BitbucketProvider, aioresponses: aioresponses_cls
) -> None:
    """Reads the target hash of a branch."""
    aioresponses.get(
        f"{SOURCE_URL}/refs/branches/main", payload=branch(sha="abc123def456")
    )

    assert await provider.get_source_repo_commit_sha() == "abc123def456"


async def test_create_sample_pull_request(
    provider: BitbucketProvider, aioresponses: aioresponses_cls
) -> None:
    """Commits on a new branch and reads the head sha of the pull request."""
    aioresponses.get(f"{SOURCE_URL}/refs/branches/main", payload=branch())
    aioresponses.post(
        f"{SOURCE_URL}/refs/branches", status=201, payload=branch(name="test")
    )
    aioresponses.get(
        re.compile(rf"{re.escape(SOURCE_URL)}/src/test-branch-\d+/README\.md"),
        body="# my-app\n",
    )
    aioresponses.post(f"{SOURCE_URL}/src", status=201)
    aioresponses.get(TEST_BRANCH, payload=branch(sha="c0ffee00"), repeat=True)
    aioresponses.post(
        f"{SOURCE_URL}/pullrequests",
        status=201,
        payload=pull_request(pull_request_id=5),
    )

    created = await provider.create_sample_pull_request_on_source_repo()

    assert created.number == 5
    assert created.sha == "c0ffee00"
    assert created.url == "https://bitbucket.org/ws/my-app/pull-requests/5"
    [branch_call] = aioresponses.requests[
        ("POST", URL(f"{SOURCE_URL}/refs/branches"))
    ]
    test_branch = branch_call.kwargs["json"]["name"]
    assert branch_call.kwargs["json"]["target"] == {"hash": "abc123def456"}
    [commit_call] = aioresponses.requests[("POST", URL(f"{SOURCE_URL}/src"))]
    form = commit_call.kwargs["data"]
    assert form["branch"] == test_branch
    assert form["README.md"].startswith("# my-app\n")
    [pr_call] = aioresponses.requests[("POST", URL(f"{SOURCE_URL}/pullrequests"))]
    assert pr_call.kwargs["json"]["source"] == {"branch": {"name": test_branch}}


async def test_create_promotion_commit(
    provider: BitbucketProvider, aioresponses: aioresponses_cls
) -> None:
    """Commits the new image and returns the new head of the branch."""
    patch_path = "components/my-app/overlays/prod/deployment-patch.yaml"
    aioresponses.get(
        f"{GITOPS_URL}/src/main/{patch_path}",
        body="containers:\n  - image: quay.io/org/my-app:old\n",
    )
    aioresponses.post(f"{GITOPS_URL}/src", status=201)
    aioresponses.get(
        f"{GITOPS_URL}/refs/branches/main", payload=branch(sha="9a8b7c6d")
    )

    sha = await provider.create_promotion_commit_on_gitops_repo(
        "prod", "quay.io/org/my-app:new"
    )

    assert sha == "9a8b7c6d"
    [commit_call] = aioresponses.requests[("POST", URL(f"{GITOPS_URL}/src"))]
    assert commit_call.kwargs["data"][patch_path] == (
        "containers:\n  - image: quay.io/org/my-app:new\n"
    )


class TestMergePullRequest:
    """Tests for merge_pull_request."""

    async def test_returns_merge_commit(
        self, provider: BitbucketProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Points the merged reference at the merge commit."""
        aioresponses.post(
            f"{GITOPS_URL}/pullrequests/5/merge",
            payload=pull_request(state="MERGED", merge_commit="1f2e3d4c"),
        )
        opened = PullRequest(number=5, sha="abc123", repository="my-app-gitops")

        merged = await provider.merge_pull_request(opened)

        assert merged.merged is True
        assert merged.sha == "1f2e3d4c"

    async def test_missing_merge_commit(
        self, provider: BitbucketProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Raises when Bitbucket reports no merge commit."""
        aioresponses.post(
            f"{GITOPS_URL}/pullrequests/5/merge", payload=pull_request(state="OPEN")
        )
        opened = PullRequest(number=5, sha="abc123", repository="my-app-gitops")

        with pytest.raises(ProviderRequestError, match="no merge commit"):
            await provider.merge_pull_request(opened)
