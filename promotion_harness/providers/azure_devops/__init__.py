"""Azure DevOps provider module."""

from promotion_harness.providers.azure_devops.config import AzureDevOpsConfig
from promotion_harness.providers.azure_devops.manifest import azure_devops_manifest
from promotion_harness.providers.azure_devops.provider import AzureDevOpsProvider

__all__ = ["AzureDevOpsConfig", "AzureDevOpsProvider", "azure_devops_manifest"]
