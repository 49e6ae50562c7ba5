"""Models for workflow step results."""

from dataclasses import dataclass
from typing import Literal

type StepStatus = Literal["success", "failure", "error", "skipped"]


@dataclass(frozen=True, kw_only=True)
class StepResult:
    """Result of a single workflow step."""

    step: str
    status: StepStatus
    duration: float
    message: str | None = None
    run_url: str | None = None
