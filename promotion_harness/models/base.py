"""Base model configuration for harness value objects."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model shared by harness value objects."""

    model_config = ConfigDict(frozen=True)
