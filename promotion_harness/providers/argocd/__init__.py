"""Argo CD provider module."""

from promotion_harness.providers.argocd.config import ArgoCDConfig
from promotion_harness.providers.argocd.manifest import argocd_manifest
from promotion_harness.providers.argocd.provider import ArgoCDProvider

__all__ = ["ArgoCDConfig", "ArgoCDProvider", "argocd_manifest"]
