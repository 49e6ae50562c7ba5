"""Abstract base class for CI pipeline providers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar, Literal

from promotion_harness.cancellation import cancel_pipelines
from promotion_harness.config import ComponentContext
from promotion_harness.discovery import select_pipeline_run
from promotion_harness.errors import PromotionError
from promotion_harness.models.cancel import CancelPipelineOptions, CancelResult
from promotion_harness.models.git import PullRequest
from promotion_harness.models.pipeline import (
    CIType,
    EventType,
    Pipeline,
    PipelineRun,
    PipelineStatus,
)
from promotion_harness.retry import Continue, Outcome, RetryPolicy, Success, retry

log = logging.getLogger(__name__)

type InitialRunPolicy = Literal["wait", "cancel"]


@dataclass(frozen=True, kw_only=True)
class CIProvider(ABC):
    """Abstract base for CI providers.

    Concrete providers translate their native runs into PipelineRun records;
    discovery, completion polling and bulk cancellation are shared.

    Class attributes describe provider capabilities:

    - ``requires_event_type``: discovery needs an event type to find runs
    - ``uses_event_type``: runs report their trigger; False when runs bind
      1:1 to a commit sha
    - ``supports_pull_request_triggers``: pull requests trigger pipelines;
      False selects the direct-commit workflow variants
    - ``initial_run_policy``: how runs triggered by component creation are
      handled
    """

    ci_type: ClassVar[CIType]
    requires_event_type: ClassVar[bool] = False
    uses_event_type: ClassVar[bool] = True
    supports_pull_request_triggers: ClassVar[bool] = True
    initial_run_policy: ClassVar[InitialRunPolicy] = "wait"

    context: ComponentContext

    def get_ci_type(self) -> CIType:
        return self.ci_type

    @abstractmethod
    async def list_pipeline_runs(
        self,
        repository: str,
        sha: str | None = None,
        status: PipelineStatus = "unknown",
    ) -> Sequence[PipelineRun]:
        """List runs of a repository.

        Args:
            repository: Repository name (source or GitOps repository)
            sha: Restrict to runs of this commit when the provider can
            status: Restrict to runs in this status when the provider can,
                "unknown" for any

        Returns:
            Normalised runs; filters are best effort and re-applied by callers

        """

    @abstractmethod
    async def check_pipeline_status(self, pipeline: Pipeline) -> PipelineStatus:
        """Fetch the current status of a tracked pipeline."""

    @abstractmethod
    async def get_pipeline_logs(self, pipeline: Pipeline) -> str:
        """Fetch the logs of a pipeline for diagnostics."""

    @abstractmethod
    async def cancel_pipeline_run(self, run: PipelineRun) -> None:
        """Cancel a single run.

        Raises:
            ProviderRequestError: The provider refused the cancellation

        """

    def is_run_completed(self, run: PipelineRun) -> bool:
        """Return True when a run needs no cancellation or waiting."""
        return run.is_terminal()

    async def get_pipeline(
        self,
        reference: PullRequest,
        desired_status: PipelineStatus = "unknown",
        event_type: EventType | None = None,
    ) -> Pipeline | None:
        """Find the pipeline a pull request or commit triggered.

        Args:
            reference: Pull request or commit to correlate by sha
            desired_status: Required status of the pipeline, "unknown" for any
            event_type: Trigger to match (pull_request or push)

        Returns:
            A new Pipeline, or None when no matching run exists yet

        """
        if self.requires_event_type and event_type is None:
            log.warning(
                "%s requires an event type to find pipelines for %s",
                self.ci_type,
                reference,
            )
            return None

        runs = await self.list_pipeline_runs(
            reference.repository, sha=reference.sha, status=desired_status
        )
        run = select_pipeline_run(
            runs,
            reference,
            desired_status,
            event_type,
            uses_event_type=self.uses_event_type,
        )
        if run is None:
            log.info(
                "No %s pipeline for %s yet (status=%s, event=%s)",
                self.ci_type,
                reference,
                desired_status,
                event_type,
            )
            return None

        log.info("Found %s pipeline %s for %s", self.ci_type, run.name, reference)
        return self.pipeline_from_run(run)

    def pipeline_from_run(self, run: PipelineRun) -> Pipeline:
        """Create the tracked pipeline for a discovered run."""
        return Pipeline.from_run(run, self.ci_type)

    async def wait_for_pipeline_to_finish(
        self,
        pipeline: Pipeline,
        timeout: float = 600,
        poll_interval: float = 5,
    ) -> PipelineStatus:
        """Poll a pipeline until it reaches a terminal status.

        Args:
            pipeline: Pipeline received from discovery; updated in place
            timeout: Maximum wait time in seconds (default: 10 minutes)
            poll_interval: Seconds between polls (default: 5)

        Returns:
            The terminal status, or "unknown" when the timeout elapsed

        """
        deadline = asyncio.get_running_loop().time() + timeout

        while not pipeline.is_terminal():
            if asyncio.get_running_loop().time() >= deadline:
                log.warning(
                    "Pipeline %s did not finish within %s seconds (last status=%s)",
                    pipeline.display_name,
                    timeout,
                    pipeline.status,
                )
                return "unknown"

            await asyncio.sleep(poll_interval)
            pipeline.update_status(await self.check_pipeline_status(pipeline))
            log.info(
                "Pipeline %s status: %s", pipeline.display_name, pipeline.status
            )

        return pipeline.status

    async def list_component_pipeline_runs(self) -> Sequence[PipelineRun]:
        """List runs of the source and GitOps repositories.

        A repository whose listing fails is logged and contributes no runs.
        """
        repositories = (self.context.source_repo_name, self.context.gitops_repo_name)
        listings = await asyncio.gather(
            *(self.list_pipeline_runs(repository) for repository in repositories),
            return_exceptions=True,
        )

        runs: list[PipelineRun] = []
        for repository, listing in zip(repositories, listings):
            if isinstance(listing, BaseException):
                log.error(
                    "Failed to list pipelines of %s: %s",
                    repository,
                    listing,
                    exc_info=listing,
                )
                continue
            runs.extend(listing)
        return runs

    async def cancel_all_pipelines(
        self, options: CancelPipelineOptions | None = None
    ) -> CancelResult:
        """Cancel the component's active pipelines."""
        options = options or CancelPipelineOptions()
        runs = await self.list_component_pipeline_runs()
        return await cancel_pipelines(
            runs, options, self.cancel_pipeline_run, self.is_run_completed
        )

    async def wait_for_all_pipeline_runs_to_finish(self, policy: RetryPolicy) -> None:
        """Wait until no run of the component is active.

        Raises:
            PromotionError: Runs were still active when the policy ran out

        """

        async def attempt() -> Outcome[None]:
            active = [
                run
                for run in await self.list_component_pipeline_runs()
                if not self.is_run_completed(run)
            ]
            if active:
                return Continue(
                    PromotionError(
                        f"{len(active)} pipeline run(s) still active: "
                        + ", ".join(run.name for run in active)
                    )
                )
            return Success(None)

        def on_retry(error: BaseException, attempt_number: int) -> None:
            log.info("Waiting for pipeline runs to finish: %s", error)

        await retry(attempt, policy, on_retry=on_retry)
        log.info("All %s pipeline runs finished", self.ci_type)

    async def handle_initial_pipeline_runs(self, policy: RetryPolicy) -> None:
        """Drain or cancel the runs triggered by component creation."""
        if self.initial_run_policy == "cancel":
            log.info("Cancelling initial %s pipeline runs", self.ci_type)
            result = await self.cancel_all_pipelines()
            if result.errors:
                log.warning(
                    "Initial pipeline cancellation reported %d error(s)",
                    len(result.errors),
                )
            return

        log.info("Waiting for initial %s pipeline runs to finish", self.ci_type)
        await self.wait_for_all_pipeline_runs_to_finish(policy)
