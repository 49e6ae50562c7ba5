"""Tekton provider manifest."""

from promotion_harness.providers.manifest import ProviderManifest
from promotion_harness.providers.tekton.config import TektonConfig
from promotion_harness.providers.tekton.provider import TektonProvider

tekton_manifest = ProviderManifest(
    config_cls=TektonConfig,
    provider_factory=TektonProvider.from_config,
)
