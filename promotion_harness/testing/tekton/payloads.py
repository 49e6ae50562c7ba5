"""Payload helpers for Tekton and Kubernetes API responses in tests."""

import base64
from typing import Any


def pipeline_run(
    *,
    name: str = "my-app-on-push-abc12",
    repository: str = "my-app",
    sha: str = "abc123def456",
    event: str = "push",
    condition_status: str | None = "True",
    reason: str = "Succeeded",
    state: str = "completed",
    created_at: str = "2099-01-01T12:00:00Z",
    transitioned_at: str | None = None,
    completed_at: str | None = None,
) -> dict[str, Any]:
    """Create a PipelineRun payload as created by Pipelines as Code.

    ``condition_status=None`` leaves the run without conditions.
    """
    conditions: list[dict[str, Any]] = []
    if condition_status is not None:
        condition = {
            "type": "Succeeded",
            "status": condition_status,
            "reason": reason,
            "message": f"Tasks Completed: 3 ({reason})",
        }
        if transitioned_at is not None:
            condition["lastTransitionTime"] = transitioned_at
        conditions.append(condition)
    status: dict[str, Any] = {"conditions": conditions, "startTime": created_at}
    if completed_at is not None:
        status["completionTime"] = completed_at
    return {
        "apiVersion": "tekton.dev/v1",
        "kind": "PipelineRun",
        "metadata": {
            "name": name,
            "namespace": "tssc-app-ci",
            "creationTimestamp": created_at,
            "labels": {
                "pipelinesascode.tekton.dev/url-repository": repository,
                "pipelinesascode.tekton.dev/sha": sha,
                "pipelinesascode.tekton.dev/state": state,
            },
            "annotations": {
                "pipelinesascode.tekton.dev/on-event": event,
                "pipelinesascode.tekton.dev/source-branch": "main",
                "pipelinesascode.tekton.dev/log-url": (
                    f"https://console.test/k8s/ns/tssc-app-ci/pipelineruns/{name}"
                ),
            },
        },
        "spec": {"pipelineRef": {"name": "docker-build"}},
        "status": status,
    }


def pipeline_run_list(*items: dict[str, Any]) -> dict[str, Any]:
    """Wrap PipelineRuns in a list response."""
    return {
        "apiVersion": "tekton.dev/v1",
        "kind": "PipelineRunList",
        "metadata": {"resourceVersion": "1"},
        "items": list(items),
    }


def pod_list(*pods: tuple[str, list[str]]) -> dict[str, Any]:
    """Create a pod list from (pod name, container names) pairs."""
    return {
        "kind": "PodList",
        "items": [
            {
                "metadata": {"name": name, "namespace": "tssc-app-ci"},
                "spec": {"containers": [{"name": c} for c in containers]},
            }
            for name, containers in pods
        ],
    }


def secret(*, name: str, data: dict[str, str]) -> dict[str, Any]:
    """Create a Kubernetes secret payload with base64 encoded values."""
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": name, "namespace": "tssc"},
        "type": "Opaque",
        "data": {
            key: base64.b64encode(value.encode("utf-8")).decode("ascii")
            for key, value in data.items()
        },
    }
