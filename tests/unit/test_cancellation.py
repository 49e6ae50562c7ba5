"""Tests for bulk pipeline cancellation."""

import asyncio
import logging
import re
from unittest.mock import AsyncMock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from promotion_harness.cancellation import cancel_pipelines, filter_reason
from promotion_harness.errors import NotFoundError, ProviderRequestError
from promotion_harness.models.cancel import ACCOUNTING_ERROR_ID, CancelPipelineOptions
from promotion_harness.models.pipeline import PipelineRun
from promotion_harness.testing.factories import PipelineRunFactory


def runs_with_statuses(*statuses: str) -> list[PipelineRun]:
    return [
        PipelineRunFactory.build(id=str(index), name=f"run-{index}", status=status)
        for index, status in enumerate(statuses)
    ]


class TestFilterReason:
    """Tests for filter_reason."""

    def test_keeps_active_run(self) -> None:
        """Returns None for an active run with default options."""
        run = PipelineRunFactory.build(status="running")

        assert filter_reason(run, CancelPipelineOptions()) is None

    def test_filters_completed_run(self) -> None:
        """Excludes completed runs unless include_completed is set."""
        run = PipelineRunFactory.build(status="success", native_status="success")

        assert filter_reason(run, CancelPipelineOptions()) == (
            "already completed (success)"
        )
        assert filter_reason(run, CancelPipelineOptions(include_completed=True)) is None

    def test_uses_completion_predicate(self) -> None:
        """Defers to the provider's notion of completion."""
        run = PipelineRunFactory.build(status="pending")

        reason = filter_reason(run, CancelPipelineOptions(), lambda _: True)

        assert reason is not None

    def test_filters_excluded_name_or_branch(self) -> None:
        """Excludes runs whose name or branch matches a pattern."""
        options = CancelPipelineOptions(exclude_patterns=[re.compile("^release-")])

        by_name = PipelineRunFactory.build(name="release-build", branch="main")
        by_branch = PipelineRunFactory.build(name="build", branch="release-1.0")
        kept = PipelineRunFactory.build(name="build", branch="main")

        assert filter_reason(by_name, options) is not None
        assert filter_reason(by_branch, options) is not None
        assert filter_reason(kept, options) is None

    def test_filters_event_type_and_branch(self) -> None:
        """Excludes runs of another trigger or branch."""
        options = CancelPipelineOptions(event_type="pull_request", branch="feature")
        push = PipelineRunFactory.build(event_type="push", branch="feature")
        other_branch = PipelineRunFactory.build(
            event_type="pull_request", branch="main"
        )
        kept = PipelineRunFactory.build(event_type="pull_request", branch="feature")

        assert filter_reason(push, options) == "event type push != pull_request"
        assert filter_reason(other_branch, options) == "branch main != feature"
        assert filter_reason(kept, options) is None


class TestCancelPipelines:
    """Tests for cancel_pipelines."""

    async def test_cancels_active_and_filters_completed(self) -> None:
        """Cancels 3 active runs out of 5 and counts the 2 completed as filtered."""
        runs = runs_with_statuses("running", "pending", "success", "running", "failure")
        cancel = AsyncMock()

        result = await cancel_pipelines(runs, CancelPipelineOptions(), cancel)

        assert result.total == 5
        assert result.cancelled == 3
        assert result.skipped == 0
        assert result.failed == 0
        assert result.filtered == 2
        assert result.errors == []
        assert cancel.await_count == 3
        assert {call.args[0].id for call in cancel.await_args_list} == {"0", "1", "3"}

    async def test_dry_run_skips_without_calling_provider(self) -> None:
        """Records selected runs as skipped in dry-run mode."""
        runs = runs_with_statuses("running", "running", "success")
        cancel = AsyncMock()

        result = await cancel_pipelines(
            runs, CancelPipelineOptions(dry_run=True), cancel
        )

        cancel.assert_not_called()
        assert result.skipped == 2
        assert result.filtered == 1
        assert all(d.reason == "Dry run mode" for d in result.details)

    async def test_records_failures_with_reasons(self) -> None:
        """Maps provider statuses to failure reasons and keeps error codes."""
        runs = runs_with_statuses("running", "running", "running")
        cancel = AsyncMock(
            side_effect=[
                NotFoundError("gone", status=404),
                ProviderRequestError("denied", status=403, provider_error_code="E403"),
                None,
            ]
        )

        result = await cancel_pipelines(
            runs, CancelPipelineOptions(concurrency=1), cancel
        )

        assert result.failed == 2
        assert result.cancelled == 1
        assert [e.message for e in result.errors] == [
            "Pipeline not found (may have been deleted)",
            "Insufficient permissions to cancel pipeline",
        ]
        assert result.errors[0].status_code == 404
        assert result.errors[1].provider_error_code == "E403"

    async def test_unexpected_error_uses_message(self) -> None:
        """Uses the exception message for errors without a known status."""
        runs = runs_with_statuses("running")
        cancel = AsyncMock(side_effect=RuntimeError("connection reset"))

        result = await cancel_pipelines(runs, CancelPipelineOptions(), cancel)

        assert result.failed == 1
        assert result.errors[0].message == "connection reset"
        assert result.errors[0].status_code is None

    async def test_failure_does_not_abort_batch(self) -> None:
        """Cancels the siblings of a failing run in the same batch."""
        runs = runs_with_statuses("running", "running", "running")

        async def cancel(run: PipelineRun) -> None:
            if run.id == "1":
                raise ProviderRequestError("boom", status=500)

        result = await cancel_pipelines(runs, CancelPipelineOptions(), cancel)

        assert result.cancelled == 2
        assert result.failed == 1

    async def test_processes_runs_in_bounded_batches(self) -> None:
        """Never runs more cancellations at once than the concurrency limit."""
        runs = runs_with_statuses(*["running"] * 7)
        in_flight = 0
        peak = 0

        async def cancel(run: PipelineRun) -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1

        result = await cancel_pipelines(
            runs, CancelPipelineOptions(concurrency=3), cancel
        )

        assert result.cancelled == 7
        assert peak == 3

    async def test_logs_systemic_batch_failure(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Logs a suspected systemic issue when a whole batch fails."""
        runs = runs_with_statuses("running", "running")
        cancel = AsyncMock(side_effect=ProviderRequestError("down", status=503))

        with caplog.at_level(logging.ERROR):
            result = await cancel_pipelines(runs, CancelPipelineOptions(), cancel)

        assert result.failed == 2
        assert "possible systemic issue" in caplog.text

    async def test_empty_listing(self) -> None:
        """Returns an empty result without errors."""
        result = await cancel_pipelines([], CancelPipelineOptions(), AsyncMock())

        assert result.total == 0
        assert result.accounted == 0
        assert result.errors == []

    async def test_reports_accounting_error_for_lost_runs(self) -> None:
        """Appends an accounting error when a run ends without an outcome."""
        runs = runs_with_statuses("running", "running")

        async def cancel(run: PipelineRun) -> None:
            if run.id == "0":
                raise asyncio.CancelledError

        result = await cancel_pipelines(runs, CancelPipelineOptions(), cancel)

        assert result.cancelled == 1
        assert result.errors[-1].pipeline_id == ACCOUNTING_ERROR_ID
        assert result.errors[-1].message == "1 pipelines lost in processing"


statuses = st.sampled_from(["pending", "running", "success", "failure", "cancelled"])


@settings(max_examples=50, deadline=None)
@given(
    run_statuses=st.lists(statuses, max_size=25),
    failing=st.sets(st.integers(min_value=0, max_value=24)),
    concurrency=st.integers(min_value=1, max_value=8),
    dry_run=st.booleans(),
    include_completed=st.booleans(),
)
def test_every_run_is_accounted_for(
    run_statuses: list[str],
    failing: set[int],
    concurrency: int,
    dry_run: bool,
    include_completed: bool,
) -> None:
    """Cancelled, failed, skipped and filtered always add up to the total."""
    runs = runs_with_statuses(*run_statuses)

    async def cancel(run: PipelineRun) -> None:
        if int(run.id) in failing:
            raise ProviderRequestError("refused", status=409)

    options = CancelPipelineOptions(
        concurrency=concurrency, dry_run=dry_run, include_completed=include_completed
    )
    result = asyncio.run(cancel_pipelines(runs, options, cancel))

    assert result.total == len(runs)
    assert (
        result.cancelled + result.failed + result.skipped + result.filtered
        == result.total
    )
    assert len(result.details) == result.total - result.filtered
    assert all(e.pipeline_id != ACCOUNTING_ERROR_ID for e in result.errors)
