"""Provider manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from promotion_harness.config import ComponentContext


@dataclass(frozen=True, kw_only=True)
class ProviderManifest[ConfigT: BaseModel, ProviderT]:
    """Manifest describing a provider plugin.

    The manifest references the configuration class, the provider factory
    and the name of the platform integration secret holding the provider
    credentials, so providers can be loaded lazily by key.
    """

    config_cls: type[ConfigT]
    provider_factory: Callable[
        [ConfigT, ComponentContext], AbstractAsyncContextManager[ProviderT]
    ]
    secret_name: str | None = None
