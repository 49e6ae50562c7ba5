"""Azure DevOps provider manifest."""

from promotion_harness.providers.azure_devops.config import AzureDevOpsConfig
from promotion_harness.providers.azure_devops.provider import AzureDevOpsProvider
from promotion_harness.providers.manifest import ProviderManifest

azure_devops_manifest = ProviderManifest(
    config_cls=AzureDevOpsConfig,
    provider_factory=AzureDevOpsProvider.from_config,
    secret_name="tssc-azure-integration",
)
