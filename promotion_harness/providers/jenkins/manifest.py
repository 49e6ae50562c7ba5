"""Jenkins provider manifest."""

from promotion_harness.providers.jenkins.config import JenkinsConfig
from promotion_harness.providers.jenkins.provider import JenkinsProvider
from promotion_harness.providers.manifest import ProviderManifest

jenkins_manifest = ProviderManifest(
    config_cls=JenkinsConfig,
    provider_factory=JenkinsProvider.from_config,
    secret_name="tssc-jenkins-integration",
)
