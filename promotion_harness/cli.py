"""CLI entry point running the promotion workflow for a component."""

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Sequence
from contextlib import AsyncExitStack
from typing import Any

from pydantic import BaseModel, SecretStr

from promotion_harness.config import ComponentContext, WorkflowSettings
from promotion_harness.integration_secrets import (
    DEFAULT_SECRET_NAMESPACE,
    KubernetesConfig,
    KubernetesSecretSource,
)
from promotion_harness.models.result import StepResult
from promotion_harness.orchestrator import PromotionWorkflow
from promotion_harness.providers.loading import load_provider_manifest
from promotion_harness.providers.tpa import TPAClient, TPAConfig
from promotion_harness.providers.tpa.config import SECRET_NAME as TPA_SECRET_NAME

STATUS_SYMBOLS = {
    "success": "✅",
    "failure": "❌",
    "error": "❗",
    "skipped": "⏭️",
}


def log_results_summary(log: logging.Logger, results: Sequence[StepResult]) -> None:
    """Log a formatted summary of step results with pipeline URLs."""
    log.info("=" * 80)
    log.info("Workflow Results Summary:")
    log.info("=" * 80)

    for result in results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info(
            "%s %s: %s (%.2fs)", symbol, result.step, result.status, result.duration
        )
        if result.run_url:
            log.info("  Run URL: %s", result.run_url)
        if result.message:
            log.info("  Message: %s", result.message)


def format_output(results: Sequence[StepResult]) -> dict[str, Any]:
    """Format step results for JSON output."""
    all_results = [
        {
            "step": result.step,
            "status": result.status,
            "duration": result.duration,
            "message": result.message,
            "run_url": result.run_url,
        }
        for result in results
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "success"),
        "failed": sum(1 for r in all_results if r["status"] in {"failure", "error"}),
        "skipped": sum(1 for r in all_results if r["status"] == "skipped"),
        "results": all_results,
    }


async def resolve_config[ConfigT: BaseModel](
    config_cls: type[ConfigT],
    config_json: str | None,
    secrets: KubernetesSecretSource | None,
    secret_name: str | None,
    secret_namespace: str = DEFAULT_SECRET_NAMESPACE,
) -> ConfigT:
    """Build a provider config from its integration secret and JSON overrides.

    Values given as JSON take precedence over values read from the secret.
    """
    values: dict[str, Any] = {}
    if secrets is not None and secret_name is not None:
        values.update(await secrets.get_secret(secret_name, secret_namespace) or {})
    if config_json:
        values.update(json.loads(config_json))
    return config_cls.model_validate(values)


async def resolve_tpa_config(
    config_json: str | None,
    secrets: KubernetesSecretSource | None,
    secret_namespace: str = DEFAULT_SECRET_NAMESPACE,
) -> TPAConfig | None:
    """Return the SBOM search config, or None when none is available."""
    if config_json:
        return TPAConfig.model_validate_json(config_json)
    if secrets is None:
        return None
    if (data := await secrets.get_secret(TPA_SECRET_NAME, secret_namespace)) is None:
        return None
    return TPAConfig.model_validate(data)


async def run(
    component: str,
    ci_key: str,
    git_key: str,
    cd_key: str = "argocd",
    ci_config_json: str | None = None,
    git_config_json: str | None = None,
    cd_config_json: str | None = None,
    tpa_config_json: str | None = None,
    settings_json: str | None = None,
    kubernetes: KubernetesConfig | None = None,
    secret_namespace: str = DEFAULT_SECRET_NAMESPACE,
) -> int:
    """Run the full workflow and return exit code."""
    log = logging.getLogger("promotion_harness")

    context = ComponentContext(name=component)
    settings = (
        WorkflowSettings.model_validate_json(settings_json)
        if settings_json
        else WorkflowSettings()
    )

    log.info("Loading providers: ci=%s git=%s cd=%s", ci_key, git_key, cd_key)
    ci_manifest = load_provider_manifest("ci", ci_key)
    git_manifest = load_provider_manifest("git", git_key)
    cd_manifest = load_provider_manifest("cd", cd_key)

    async with AsyncExitStack() as stack:
        secrets = None
        if kubernetes is not None:
            secrets = await stack.enter_async_context(
                KubernetesSecretSource.from_config(kubernetes)
            )

        ci_config = await resolve_config(
            ci_manifest.config_cls,
            ci_config_json,
            secrets,
            ci_manifest.secret_name,
            secret_namespace,
        )
        git_config = await resolve_config(
            git_manifest.config_cls,
            git_config_json,
            secrets,
            git_manifest.secret_name,
            secret_namespace,
        )
        cd_config = await resolve_config(
            cd_manifest.config_cls,
            cd_config_json,
            secrets,
            cd_manifest.secret_name,
            secret_namespace,
        )
        tpa_config = await resolve_tpa_config(
            tpa_config_json, secrets, secret_namespace
        )

        ci = await stack.enter_async_context(
            ci_manifest.provider_factory(ci_config, context)
        )
        git = await stack.enter_async_context(
            git_manifest.provider_factory(git_config, context)
        )
        cd = await stack.enter_async_context(
            cd_manifest.provider_factory(cd_config, context)
        )
        sbom = None
        if tpa_config is not None:
            sbom = await stack.enter_async_context(TPAClient.from_config(tpa_config))

        log.info("Running workflow for component %s", component)
        workflow = PromotionWorkflow(
            git=git, ci=ci, cd=cd, sbom=sbom, settings=settings
        )
        results = await workflow.run_full_workflow()

    log_results_summary(log, results)

    output = format_output(results)
    print(json.dumps(output, indent=2))

    has_failures = any(result.status in {"failure", "error"} for result in results)

    return 1 if has_failures else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run the build and promotion workflow for a component"
    )
    parser.add_argument(
        "--component",
        required=True,
        help="Component name (source repository name)",
    )
    parser.add_argument(
        "--ci",
        required=True,
        help="CI provider key (tekton, jenkins, github-actions, gitlab-ci, azure)",
    )
    parser.add_argument(
        "--git",
        required=True,
        help="Git provider key (github, gitlab, bitbucket)",
    )
    parser.add_argument(
        "--cd",
        default="argocd",
        help="CD provider key (default: argocd)",
    )
    parser.add_argument("--ci-config", help="JSON configuration for the CI provider")
    parser.add_argument("--git-config", help="JSON configuration for the Git provider")
    parser.add_argument("--cd-config", help="JSON configuration for the CD provider")
    parser.add_argument("--tpa-config", help="JSON configuration for SBOM search")
    parser.add_argument("--settings", help="JSON workflow settings")
    parser.add_argument(
        "--kube-api-url",
        default=os.environ.get("KUBE_API_URL"),
        help="Kubernetes API URL used to read integration secrets",
    )
    parser.add_argument(
        "--kube-token",
        default=os.environ.get("KUBE_TOKEN"),
        help="Kubernetes bearer token used to read integration secrets",
    )
    parser.add_argument(
        "--secret-namespace",
        default=DEFAULT_SECRET_NAMESPACE,
        help="Namespace of the integration secrets (default: tssc)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    kubernetes = None
    if args.kube_api_url and args.kube_token:
        kubernetes = KubernetesConfig(
            api_server_url=args.kube_api_url, token=SecretStr(args.kube_token)
        )

    exit_code = asyncio.run(
        run(
            component=args.component,
            ci_key=args.ci,
            git_key=args.git,
            cd_key=args.cd,
            ci_config_json=args.ci_config,
            git_config_json=args.git_config,
            cd_config_json=args.cd_config,
            tpa_config_json=args.tpa_config,
            settings_json=args.settings,
            kubernetes=kubernetes,
            secret_namespace=args.secret_namespace,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
