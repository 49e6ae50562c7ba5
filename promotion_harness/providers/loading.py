"""Loading of providers from entry points."""

from importlib.metadata import entry_points
from typing import Any, Literal

from promotion_harness.providers.manifest import ProviderManifest

type Capability = Literal["ci", "git", "cd"]

ENTRY_POINT_GROUPS: dict[Capability, str] = {
    "ci": "promotion_harness.ci",
    "git": "promotion_harness.git",
    "cd": "promotion_harness.cd",
}


class ProviderNotFoundError(Exception):
    """Raised when a provider is not found."""


def load_provider_manifest(
    capability: Capability, key: str
) -> ProviderManifest[Any, Any]:
    """Load a provider manifest by capability and key.

    Args:
        capability: Provider capability ("ci", "git" or "cd")
        key: The provider key as registered in pyproject.toml
             (e.g., "tekton", "gitlab", "argocd")

    Returns:
        The provider manifest instance

    Raises:
        ProviderNotFoundError: If no provider with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUPS[capability])

    for entry in entries:
        if entry.name == key:
            manifest: ProviderManifest[Any, Any] = entry.load()
            return manifest

    available = [e.name for e in entries]
    raise ProviderNotFoundError(
        f"{capability.upper()} provider '{key}' not found. "
        f"Available providers: {available}"
    )
