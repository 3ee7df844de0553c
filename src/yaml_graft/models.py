"""Base Pydantic models.

This module defines the foundational model classes used by declarative
extension definitions, parsed operator calls and runtime settings.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for declarative elements.

    This class serves as the root for all Pydantic models representing
    parsed expressions and extension definitions such as operators and
    plugins.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation,
          so a parsed operator call is the same at every read.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in extension definitions.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    This class serves as the root for settings models resolving runtime
    configuration from keyword arguments and environment variables.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown environment variables are ignored.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        populate_by_name=True,
    )
