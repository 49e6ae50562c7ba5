"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from promotion_harness.models.git import PullRequest
from promotion_harness.models.pipeline import Pipeline, PipelineRun
from promotion_harness.models.result import StepResult
from promotion_harness.retry import RetryPolicy


class StepResultFactory(DataclassFactory[StepResult]):
    """Factory for StepResult."""

    __model__ = StepResult

    message = None
    run_url = None


class PipelineRunFactory(DataclassFactory[PipelineRun]):
    """Factory for PipelineRun.

    Builds a running push run; override sha, status and updated_at to shape
    discovery scenarios.
    """

    __model__ = PipelineRun

    repository = "my-app"
    status = "running"
    native_status = "running"
    event_type = "push"
    branch = "main"
    raw = Use(dict)


class PipelineFactory(DataclassFactory[Pipeline]):
    """Factory for Pipeline."""

    __model__ = Pipeline

    ci_type = "gitlabci"
    repository_name = "my-app"
    status = "running"
    logs = None
    raw_result = None
    build_number = None
    job_name = None


class PullRequestFactory(ModelFactory[PullRequest]):
    """Factory for PullRequest."""

    repository = "my-app"
    merged = False
    merged_at = None


def instant_policy(retries: int = 3) -> RetryPolicy:
    """Retry policy without delays between attempts."""
    return RetryPolicy(retries=retries, min_timeout=0, max_timeout=0)
