"""Watch configuration loading and validation module."""

from watchfetch.features.config.error_hints import (
    format_validation_error,
    get_error_hint,
)
from watchfetch.features.config.loader import ConfigLoader, ConfigValidationError
from watchfetch.features.config.schemas import SourceConfig, WatchConfig


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "SourceConfig",
    "WatchConfig",
    "format_validation_error",
    "get_error_hint",
]
