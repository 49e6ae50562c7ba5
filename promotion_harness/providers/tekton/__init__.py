"""Tekton (Pipelines as Code) provider module."""

from promotion_harness.providers.tekton.config import TektonConfig
from promotion_harness.providers.tekton.manifest import tekton_manifest
from promotion_harness.providers.tekton.provider import TektonProvider

__all__ = ["TektonConfig", "TektonProvider", "tekton_manifest"]
