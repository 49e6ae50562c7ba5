"""Models for bulk pipeline cancellation."""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from pydantic import Field

from promotion_harness.models.base import Model
from promotion_harness.models.pipeline import EventType, PipelineStatus

type CancelOutcome = Literal["cancelled", "failed", "skipped"]

ACCOUNTING_ERROR_ID = "ACCOUNTING_ERROR"


class CancelPipelineOptions(Model):
    """Filters and execution knobs for cancel_all_pipelines."""

    include_completed: bool = False
    exclude_patterns: Sequence[re.Pattern[str]] = ()
    event_type: EventType | None = None
    branch: str | None = None
    concurrency: int = Field(default=10, ge=1)
    dry_run: bool = False


@dataclass(frozen=True, kw_only=True)
class PipelineCancelDetail:
    """Outcome for a single pipeline that was attempted."""

    pipeline_id: str
    name: str
    status: PipelineStatus
    result: CancelOutcome
    reason: str | None = None
    branch: str | None = None
    event_type: EventType | None = None


@dataclass(frozen=True, kw_only=True)
class CancelError:
    """Error recorded while cancelling, or an accounting mismatch."""

    pipeline_id: str
    message: str
    status_code: int | None = None
    provider_error_code: str | None = None


@dataclass(kw_only=True)
class CancelResult:
    """Accumulated outcome of a bulk cancellation.

    Every fetched pipeline is counted exactly once, either as filtered out
    before any attempt or under one of cancelled, failed or skipped.
    """

    total: int = 0
    cancelled: int = 0
    failed: int = 0
    skipped: int = 0
    filtered: int = 0
    details: list[PipelineCancelDetail] = field(default_factory=list)
    errors: list[CancelError] = field(default_factory=list)

    @property
    def accounted(self) -> int:
        """Number of pipelines with a recorded outcome."""
        return self.cancelled + self.failed + self.skipped + self.filtered

    def record(self, detail: PipelineCancelDetail) -> None:
        """Count a per-pipeline outcome."""
        self.details.append(detail)
        match detail.result:
            case "cancelled":
                self.cancelled += 1
            case "failed":
                self.failed += 1
            case "skipped":
                self.skipped += 1
