"""Promotion workflow driving a component from source change to production."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from promotion_harness.config import WorkflowSettings
from promotion_harness.discovery import get_pipeline_with_retry
from promotion_harness.errors import HarnessError, PreconditionError, PromotionError
from promotion_harness.models.git import Environment, PullRequest, previous_environment
from promotion_harness.models.pipeline import EventType, Pipeline, PipelineStatus
from promotion_harness.models.result import StepResult
from promotion_harness.providers.base import CIProvider
from promotion_harness.providers.cd_base import CDProvider
from promotion_harness.providers.git_base import GitProvider
from promotion_harness.providers.tpa import TPAClient

log = logging.getLogger(__name__)

type StepAction = Callable[[], Awaitable[str | None]]


def image_digest(image: str) -> str:
    """Return the part of an image reference after the last colon."""
    return image.rsplit(":", 1)[-1]


@dataclass(frozen=True, kw_only=True)
class PromotionWorkflow:
    """Orchestrates builds and promotions over Git, CI and CD providers.

    The workflow variant is chosen from the CI provider's capabilities:
    providers that pull requests cannot trigger use direct commits, all others
    go through pull requests.
    """

    git: GitProvider
    ci: CIProvider
    cd: CDProvider
    sbom: TPAClient | None = None
    settings: WorkflowSettings = field(default_factory=WorkflowSettings)

    @property
    def uses_pull_requests(self) -> bool:
        return self.ci.supports_pull_request_triggers

    async def handle_initial_pipeline_runs(self) -> None:
        """Drain or cancel the pipelines started by component creation."""
        await self.ci.handle_initial_pipeline_runs(self.settings.drain_retry)

    async def get_pipeline_and_wait_for_completion(
        self,
        reference: PullRequest,
        event_type: EventType,
        desired_status: PipelineStatus = "unknown",
    ) -> Pipeline:
        """Find the pipeline of a change, wait for it and require success.

        Args:
            reference: Pull request or commit that triggered the pipeline
            event_type: Trigger of the expected pipeline
            desired_status: Status the pipeline must be in when found

        Returns:
            The successful pipeline

        Raises:
            PromotionError: No pipeline was found, or it did not succeed

        """
        pipeline = await get_pipeline_with_retry(
            self.ci,
            reference,
            self.settings.discovery_retry,
            desired_status,
            event_type,
        )
        log.info("Waiting for pipeline %s of %s", pipeline.display_name, reference)
        status = await self.ci.wait_for_pipeline_to_finish(
            pipeline,
            timeout=self.settings.pipeline_timeout,
            poll_interval=self.settings.poll_interval,
        )
        await self.expect_pipeline_success(pipeline, status)
        return pipeline

    async def expect_pipeline_success(
        self, pipeline: Pipeline, status: PipelineStatus
    ) -> None:
        """Raise with the pipeline logs attached unless it succeeded."""
        if status == "success":
            log.info("Pipeline %s succeeded", pipeline.display_name)
            return

        try:
            pipeline.logs = await self.ci.get_pipeline_logs(pipeline)
        except HarnessError as e:
            log.warning("Could not fetch logs of %s: %s", pipeline.display_name, e)
        else:
            log.error("Logs of pipeline %s:\n%s", pipeline.display_name, pipeline.logs)

        raise PromotionError(
            f"{self.ci.get_ci_type()} pipeline {pipeline.display_name} "
            f"finished with status {status}"
        )

    async def handle_source_repo_code_changes(self) -> Pipeline:
        """Change the source repository and wait for the resulting build.

        With pull requests, the pull request pipeline must succeed, then the
        pull request is merged and the push pipeline of the merge commit is
        awaited.
        """
        if not self.uses_pull_requests:
            commit = await self.git.create_sample_commit_on_source_repo()
            return await self.get_pipeline_and_wait_for_completion(commit, "push")

        pull_request = await self.git.create_sample_pull_request_on_source_repo()
        await self.get_pipeline_and_wait_for_completion(pull_request, "pull_request")
        merged = await self.git.merge_pull_request(pull_request)
        return await self.get_pipeline_and_wait_for_completion(merged, "push")

    async def verify_environment_deployment(self, environment: Environment) -> None:
        """Sync an environment and wait for the current GitOps head commit."""
        await self.require_application(environment)
        revision = await self.git.get_gitops_repo_commit_sha()
        await self.sync_and_wait(environment, revision)

    async def promote_to_environment_with_pr(
        self, environment: Environment, image: str
    ) -> Pipeline:
        """Promote an image through a pull request on the GitOps repository."""
        await self.require_application(environment)
        pull_request = await self.git.create_promotion_pull_request_on_gitops_repo(
            environment, image
        )
        pipeline = await self.get_pipeline_and_wait_for_completion(
            pull_request, "pull_request"
        )
        merged = await self.git.merge_pull_request(pull_request)
        await self.sync_and_wait(environment, merged.sha)
        return pipeline

    async def promote_to_environment_without_pr(
        self, environment: Environment, image: str
    ) -> Pipeline:
        """Promote an image with a direct commit to the GitOps repository."""
        await self.require_application(environment)
        sha = await self.git.create_promotion_commit_on_gitops_repo(environment, image)
        commit = PullRequest.for_commit(sha, self.git.context.gitops_repo_name)
        pipeline = await self.get_pipeline_and_wait_for_completion(commit, "push")
        await self.sync_and_wait(environment, sha)
        return pipeline

    async def handle_promotion_to_environment(
        self, environment: Environment, image: str
    ) -> Pipeline:
        """Promote an image into an environment using the provider's variant.

        Raises:
            PreconditionError: The environment is not a promotion target

        """
        if previous_environment(environment) is None:
            raise PreconditionError(f"Cannot promote into {environment}")

        log.info("Promoting %s to %s", image, environment)
        if self.uses_pull_requests:
            return await self.promote_to_environment_with_pr(environment, image)
        return await self.promote_to_environment_without_pr(environment, image)

    async def promote(self, environment: Environment) -> Pipeline:
        """Promote the image running in the previous environment."""
        source = previous_environment(environment)
        if source is None:
            raise PreconditionError(f"Cannot promote into {environment}")
        image = await self.git.extract_application_image(source)
        return await self.handle_promotion_to_environment(environment, image)

    async def verify_sbom(self, image: str) -> None:
        """Require an SBOM describing the image digest."""
        if self.sbom is None:
            log.info("No SBOM client configured, skipping SBOM verification")
            return

        digest = image_digest(image)
        if await self.sbom.search_sbom_by_sha256(digest) is None:
            raise PromotionError(f"No SBOM found for image digest {digest}")
        log.info("Found SBOM for image digest %s", digest)

    async def require_application(self, environment: Environment) -> None:
        if await self.cd.get_application(environment) is None:
            raise PreconditionError(
                f"Application {self.git.context.application_name(environment)} "
                "does not exist"
            )

    async def sync_and_wait(self, environment: Environment, revision: str) -> None:
        """Sync an environment and require it to run the revision.

        Raises:
            PromotionError: The application did not sync the revision in time

        """
        await self.cd.sync_application(environment)
        result = await self.cd.wait_until_application_is_synced(
            environment,
            revision,
            max_retries=self.settings.sync_retries,
            delay=self.settings.sync_delay,
        )
        if not result.synced:
            raise PromotionError(
                f"Deployment to {environment} failed ({result.status}): "
                f"{result.message}"
            )

    async def run_full_workflow(self) -> Sequence[StepResult]:
        """Run every workflow step in order.

        After the first unsuccessful step the remaining steps are skipped.

        Returns:
            One result per step

        """

        async def build() -> str | None:
            return (await self.handle_source_repo_code_changes()).web_url

        async def deploy_development() -> str | None:
            await self.verify_environment_deployment("development")
            return None

        async def promote_stage() -> str | None:
            return (await self.promote("stage")).web_url

        async def promote_prod() -> str | None:
            return (await self.promote("prod")).web_url

        async def verify_sbom() -> str | None:
            await self.verify_sbom(await self.git.extract_application_image("prod"))
            return None

        async def initial_runs() -> str | None:
            await self.handle_initial_pipeline_runs()
            return None

        steps: list[tuple[str, StepAction]] = [
            ("initial-pipelines", initial_runs),
            ("build", build),
            ("deploy-development", deploy_development),
            ("promote-stage", promote_stage),
            ("promote-prod", promote_prod),
        ]
        if self.settings.verify_sbom and self.sbom is not None:
            steps.append(("verify-sbom", verify_sbom))

        results: list[StepResult] = []
        for name, action in steps:
            if results and results[-1].status != "success":
                results.append(StepResult(step=name, status="skipped", duration=0.0))
                continue
            results.append(await self._run_step(name, action))
        return results

    async def _run_step(self, name: str, action: StepAction) -> StepResult:
        log.info("Running step %s", name)
        started = asyncio.get_running_loop().time()
        try:
            run_url = await action()
        except (PromotionError, PreconditionError) as e:
            log.error("Step %s failed: %s", name, e)
            return StepResult(
                step=name,
                status="failure",
                duration=asyncio.get_running_loop().time() - started,
                message=str(e),
            )
        except Exception as e:
            log.error("Step %s errored: %s", name, e, exc_info=e)
            return StepResult(
                step=name,
                status="error",
                duration=asyncio.get_running_loop().time() - started,
                message=str(e),
            )

        duration = asyncio.get_running_loop().time() - started
        log.info("Step %s completed in %.1fs", name, duration)
        return StepResult(
            step=name, status="success", duration=duration, run_url=run_url
        )
