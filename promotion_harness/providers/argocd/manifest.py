"""Argo CD provider manifest."""

from promotion_harness.providers.argocd.config import ArgoCDConfig
from promotion_harness.providers.argocd.provider import ArgoCDProvider
from promotion_harness.providers.manifest import ProviderManifest

argocd_manifest = ProviderManifest(
    config_cls=ArgoCDConfig,
    provider_factory=ArgoCDProvider.from_config,
)
