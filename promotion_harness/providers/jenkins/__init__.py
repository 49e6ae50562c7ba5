"""Jenkins provider module."""

from promotion_harness.providers.jenkins.config import JenkinsConfig
from promotion_harness.providers.jenkins.manifest import jenkins_manifest
from promotion_harness.providers.jenkins.provider import JenkinsProvider

__all__ = ["JenkinsConfig", "JenkinsProvider", "jenkins_manifest"]
