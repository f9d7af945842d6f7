"""Configuration management for the matcher."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError, format_validation_errors
from .loader import load_config
from .models import (
    AppConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MatchingConfig,
    TagSuggestionConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "load_environment_config",
    "format_validation_errors",
    # Configuration models
    "AppConfig",
    "MatchingConfig",
    "TagSuggestionConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
