"""Trusted Profile Analyzer (SBOM search) module."""

from promotion_harness.providers.tpa.client import TPAClient
from promotion_harness.providers.tpa.config import TPAConfig

__all__ = ["TPAClient", "TPAConfig"]
