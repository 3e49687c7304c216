# src/flowfan/plugins/config_base.py
"""Base classes for typed plugin configurations.

This module provides base classes that plugins inherit from to get:
- Strict validation (reject unknown fields)
- Factory methods with clear error messages
- Common validation patterns (attribute expressions)

Example usage:
    class MyProcessorConfig(PluginConfig):
        target_attribute: str = Field(...)

    cfg = MyProcessorConfig.from_dict(config)
    name = cfg.target_attribute  # Direct access, fails fast if missing
"""

from typing import Any, Self

from pydantic import BaseModel, ValidationError

from flowfan.core.expressions import validate_expression


class PluginConfigError(Exception):
    """Raised when plugin configuration is invalid."""

    pass


class PluginConfig(BaseModel):
    """Base class for typed plugin configurations.

    All plugin configs should inherit from this class. Configs are frozen:
    a processor's settings never change once it has been scheduled.
    """

    model_config = {"extra": "forbid", "frozen": True}  # Reject unknown fields

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """Create config from dict with clear error on validation failure.

        Args:
            config: Dictionary of configuration values.

        Returns:
            Validated configuration instance.

        Raises:
            PluginConfigError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise PluginConfigError(f"Invalid configuration for {cls.__name__}: config must be a dict, got {type(config).__name__}.")

        try:
            return cls.model_validate(config)
        except ValidationError as e:
            raise PluginConfigError(f"Invalid configuration for {cls.__name__}: {e}") from e
        except ValueError as e:
            raise PluginConfigError(f"Invalid configuration for {cls.__name__}: {e}") from e


def expression_field(v: str) -> str:
    """Shared validator body for fields holding attribute expressions.

    Use from a @field_validator so every expression field rejects empty
    values and template syntax errors at configuration time.
    """
    return validate_expression(v)
