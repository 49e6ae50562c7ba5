"""Correlation of commits to the CI pipelines they triggered."""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from promotion_harness.errors import PromotionError, ProviderRequestError
from promotion_harness.models.git import PullRequest
from promotion_harness.models.pipeline import (
    EventType,
    Pipeline,
    PipelineRun,
    PipelineStatus,
)
from promotion_harness.providers.http import TRANSIENT_STATUSES
from promotion_harness.retry import (
    Continue,
    Outcome,
    RetryPolicy,
    Stop,
    Success,
    retry,
)

if TYPE_CHECKING:
    from promotion_harness.providers.base import CIProvider

log = logging.getLogger(__name__)

FILTERABLE_EVENT_TYPES: frozenset[EventType] = frozenset(["pull_request", "push"])

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def select_pipeline_run(
    runs: Sequence[PipelineRun],
    reference: PullRequest,
    desired_status: PipelineStatus = "unknown",
    event_type: EventType | None = None,
    *,
    uses_event_type: bool = True,
) -> PipelineRun | None:
    """Pick the run a commit triggered.

    Runs are narrowed to the reference sha and, when the provider reports
    triggers, to the requested event type. The most recently updated run wins,
    with ties going to the later run in listing order. When a desired status
    is given, the winner must be in that status.

    Args:
        runs: Runs listed for the reference repository
        reference: Pull request or commit whose sha is correlated
        desired_status: Required status of the selected run, "unknown" for any
        event_type: Trigger to match, ignored unless pull_request or push
        uses_event_type: False for providers that bind runs 1:1 to a sha

    Returns:
        The selected run, or None when nothing matches yet

    """
    candidates = [run for run in runs if run.sha == reference.sha]
    if not candidates:
        return None

    if uses_event_type and event_type in FILTERABLE_EVENT_TYPES:
        candidates = [run for run in candidates if run.event_type == event_type]
        if not candidates:
            return None

    _, latest = max(
        enumerate(candidates),
        key=lambda item: (_as_aware(item[1].updated_at), item[0]),
    )

    if desired_status != "unknown" and latest.status != desired_status:
        return None

    return latest


def _as_aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def get_pipeline_with_retry(
    ci: "CIProvider",
    reference: PullRequest,
    policy: RetryPolicy,
    desired_status: PipelineStatus = "unknown",
    event_type: EventType | None = None,
) -> Pipeline:
    """Poll discovery until the pipeline for a reference appears.

    Raises:
        PromotionError: No matching pipeline appeared within the retry budget

    """

    async def attempt() -> Outcome[Pipeline]:
        try:
            pipeline = await ci.get_pipeline(reference, desired_status, event_type)
        except ProviderRequestError as e:
            if e.status in TRANSIENT_STATUSES:
                return Continue(e)
            return Stop(e)
        if pipeline is None:
            return Continue(
                PromotionError(
                    f"No {ci.get_ci_type()} pipeline found for {reference} "
                    f"(status={desired_status}, event={event_type})"
                )
            )
        return Success(pipeline)

    def on_retry(error: BaseException, attempt_number: int) -> None:
        log.info(
            "Waiting for pipeline of %s (attempt %d/%d)",
            reference,
            attempt_number,
            policy.max_attempts,
        )

    return await retry(attempt, policy, on_retry=on_retry)
