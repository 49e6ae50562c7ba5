"""Tests for pipeline models and status mapping."""

from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from promotion_harness.models.pipeline import (
    CANONICAL_STATUS_MAP,
    TERMINAL_STATUSES,
    Pipeline,
    map_pipeline_status,
)
from promotion_harness.testing.factories import PipelineFactory, PipelineRunFactory

PIPELINE_STATUSES = {"pending", "running", "success", "failure", "cancelled", "unknown"}


class TestMapPipelineStatus:
    """Tests for map_pipeline_status."""

    @pytest.mark.parametrize(
        ("native", "expected"),
        [
            ("success", "success"),
            ("failed", "failure"),
            ("canceled", "failure"),
            ("running", "running"),
            ("pending", "pending"),
            ("created", "pending"),
            ("queued", "pending"),
            ("manual", "pending"),
            ("scheduled", "pending"),
            ("skipped", "failure"),
        ],
    )
    def test_maps_canonical_statuses(self, native: str, expected: str) -> None:
        """Maps every canonical native status."""
        assert map_pipeline_status(native) == expected

    def test_is_case_insensitive(self) -> None:
        """Ignores case and surrounding whitespace."""
        assert map_pipeline_status("SUCCESS") == "success"
        assert map_pipeline_status(" Running ") == "running"

    @pytest.mark.parametrize("native", [None, 42, "", "exploded", ["success"]])
    def test_unknown_values_map_to_unknown(self, native: object) -> None:
        """Maps unrecognized values, including non-strings, to unknown."""
        assert map_pipeline_status(native) == "unknown"

    def test_uses_custom_table(self) -> None:
        """Looks statuses up in a provider table when given."""
        table = {**CANONICAL_STATUS_MAP, "succeeded": "success"}

        assert map_pipeline_status("Succeeded", table) == "success"
        assert map_pipeline_status("succeeded") == "unknown"

    @given(st.one_of(st.text(), st.integers(), st.none(), st.floats()))
    def test_mapping_is_total(self, native: object) -> None:
        """Returns a pipeline status for any input."""
        assert map_pipeline_status(native) in PIPELINE_STATUSES


class TestPipelineRun:
    """Tests for PipelineRun."""

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
    def test_terminal_statuses(self, status: str) -> None:
        """Reports success, failure and cancelled as terminal."""
        assert PipelineRunFactory.build(status=status).is_terminal()

    @pytest.mark.parametrize("status", ["pending", "running", "unknown"])
    def test_active_statuses(self, status: str) -> None:
        """Reports other statuses as not terminal."""
        assert not PipelineRunFactory.build(status=status).is_terminal()


class TestPipeline:
    """Tests for Pipeline."""

    def test_from_run_copies_identity(self) -> None:
        """Creates a pipeline carrying the run's identity and status."""
        run = PipelineRunFactory.build(
            id="17",
            name="Pipeline-17",
            sha="abc123",
            web_url="https://ci.test/17",
            updated_at=datetime(2099, 1, 1, tzinfo=timezone.utc),
        )

        pipeline = Pipeline.from_run(run, "gitlabci")

        assert pipeline.id == "17"
        assert pipeline.name == "Pipeline-17"
        assert pipeline.ci_type == "gitlabci"
        assert pipeline.repository_name == run.repository
        assert pipeline.status == run.status
        assert pipeline.sha == "abc123"
        assert pipeline.web_url == "https://ci.test/17"

    def test_display_name_prefers_job_and_build_number(self) -> None:
        """Uses ``job #number`` when both are known."""
        pipeline = PipelineFactory.build(job_name="my-app", build_number=12)

        assert pipeline.display_name == "my-app #12"

    def test_display_name_falls_back_to_name_then_id(self) -> None:
        """Uses the name, or the id when there is no name."""
        assert PipelineFactory.build(name="run-1").display_name == "run-1"
        assert PipelineFactory.build(id="7", name=None).display_name == "7"

    def test_update_status(self) -> None:
        """Records the latest status and reflects it in the predicates."""
        pipeline = PipelineFactory.build(status="running")
        assert not pipeline.is_terminal()

        pipeline.update_status("success")

        assert pipeline.is_terminal()
        assert pipeline.is_successful()

    def test_failure_is_terminal_but_not_successful(self) -> None:
        """A failed pipeline is terminal and not successful."""
        pipeline = PipelineFactory.build(status="failure")

        assert pipeline.is_terminal()
        assert not pipeline.is_successful()
