"""Bulk cancellation of pipeline runs with filtering and accounting."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from promotion_harness.errors import ProviderRequestError
from promotion_harness.models.cancel import (
    ACCOUNTING_ERROR_ID,
    CancelError,
    CancelOutcome,
    CancelPipelineOptions,
    CancelResult,
    PipelineCancelDetail,
)
from promotion_harness.models.pipeline import PipelineRun

log = logging.getLogger(__name__)

type CancelFn = Callable[[PipelineRun], Awaitable[None]]
type CompletedFn = Callable[[PipelineRun], bool]

FAILURE_REASONS: dict[int, str] = {
    404: "Pipeline not found (may have been deleted)",
    403: "Insufficient permissions to cancel pipeline",
}


def filter_reason(
    run: PipelineRun,
    options: CancelPipelineOptions,
    is_completed: CompletedFn = PipelineRun.is_terminal,
) -> str | None:
    """Return why a run is excluded from cancellation, or None to attempt it.

    Filters apply in order: completed, exclusion pattern, event type, branch.
    """
    if not options.include_completed and is_completed(run):
        return f"already completed ({run.native_status})"

    for pattern in options.exclude_patterns:
        if pattern.search(run.name) or (run.branch and pattern.search(run.branch)):
            return f"matches exclusion pattern {pattern.pattern!r}"

    if options.event_type is not None and run.event_type != options.event_type:
        return f"event type {run.event_type} != {options.event_type}"

    if options.branch is not None and run.branch != options.branch:
        return f"branch {run.branch} != {options.branch}"

    return None


async def cancel_pipelines(
    runs: Sequence[PipelineRun],
    options: CancelPipelineOptions,
    cancel: CancelFn,
    is_completed: CompletedFn = PipelineRun.is_terminal,
) -> CancelResult:
    """Cancel runs in bounded batches and account for every one of them.

    Batches run one after another; runs inside a batch are cancelled
    concurrently and a failure never aborts its siblings.

    Args:
        runs: Every run fetched for the component
        options: Filters, batch size and dry-run switch
        cancel: Provider call cancelling a single run
        is_completed: Predicate deciding which runs are already finished

    Returns:
        Counters, per-run details and errors

    """
    result = CancelResult(total=len(runs))

    selected: list[PipelineRun] = []
    for run in runs:
        if (reason := filter_reason(run, options, is_completed)) is not None:
            log.debug("Not cancelling pipeline %s: %s", run.id, reason)
            result.filtered += 1
        else:
            selected.append(run)

    log.info(
        "Cancelling %d of %d pipeline(s) (filtered=%d, dry_run=%s)",
        len(selected),
        result.total,
        result.filtered,
        options.dry_run,
    )

    for start in range(0, len(selected), options.concurrency):
        batch = selected[start : start + options.concurrency]
        log.debug(
            "Processing batch %d (%d pipeline(s))",
            start // options.concurrency + 1,
            len(batch),
        )
        outcomes = await asyncio.gather(
            *(_cancel_one(run, options, cancel) for run in batch),
            return_exceptions=True,
        )

        batch_failures = 0
        for run, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                log.error("Cancellation of pipeline %s was interrupted", run.id)
                batch_failures += 1
                continue
            detail, error = outcome
            result.record(detail)
            if error is not None:
                result.errors.append(error)
            if detail.result == "failed":
                batch_failures += 1

        if batch and batch_failures == len(batch):
            log.error(
                "Entire batch of %d pipeline(s) failed to cancel, "
                "possible systemic issue",
                len(batch),
            )

    if result.accounted != result.total:
        missing = result.total - result.accounted
        log.error(
            "Cancellation accounting mismatch: total=%d cancelled=%d failed=%d "
            "skipped=%d filtered=%d",
            result.total,
            result.cancelled,
            result.failed,
            result.skipped,
            result.filtered,
        )
        result.errors.append(
            CancelError(
                pipeline_id=ACCOUNTING_ERROR_ID,
                message=f"{missing} pipelines lost in processing",
            )
        )

    log.info(
        "Cancellation finished: cancelled=%d failed=%d skipped=%d filtered=%d",
        result.cancelled,
        result.failed,
        result.skipped,
        result.filtered,
    )
    return result


async def _cancel_one(
    run: PipelineRun,
    options: CancelPipelineOptions,
    cancel: CancelFn,
) -> tuple[PipelineCancelDetail, CancelError | None]:
    if options.dry_run:
        log.info("[dry run] Would cancel pipeline %s (%s)", run.id, run.name)
        return _detail(run, "skipped", "Dry run mode"), None

    try:
        await cancel(run)
    except Exception as e:
        status_code = e.status if isinstance(e, ProviderRequestError) else None
        error_code = (
            e.provider_error_code if isinstance(e, ProviderRequestError) else None
        )
        reason = FAILURE_REASONS.get(status_code or 0, str(e))
        log.warning("Failed to cancel pipeline %s: %s", run.id, reason)
        error = CancelError(
            pipeline_id=run.id,
            message=reason,
            status_code=status_code,
            provider_error_code=error_code,
        )
        return _detail(run, "failed", reason), error

    log.info("Cancelled pipeline %s (%s)", run.id, run.name)
    return _detail(run, "cancelled"), None


def _detail(
    run: PipelineRun, result: CancelOutcome, reason: str | None = None
) -> PipelineCancelDetail:
    return PipelineCancelDetail(
        pipeline_id=run.id,
        name=run.name,
        status=run.status,
        result=result,
        reason=reason,
        branch=run.branch,
        event_type=run.event_type,
    )
