"""Configuration loader for the matcher."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_CANDIDATES = [
    Path("config.yaml"),
    Path("config") / "config.yaml",
]


def load_config(config_path: Optional[Path] = None) -> tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    File lookup:
    1. Use ``config_path`` if given (it must exist)
    2. Try config.yaml in the current directory
    3. Try ./config/config.yaml
    4. Fall back to built-in defaults

    Environment values override the file where both apply (the remote tag
    suggestion endpoint and the log level).

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid or an explicit file is missing
    """
    config_file = _find_config_file(config_path)

    config_dict: Dict[str, Any] = {}
    if config_file is not None:
        config_dict = _read_yaml(config_file)

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    try:
        app_config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            e,
            source=config_file or "built-in defaults",
            suggestions=[
                "Review config.example.yaml for correct format",
                "Verify field types match the expected schema",
            ],
        ) from e

    env_config = load_environment_config()

    if env_config.tag_suggest_url:
        app_config.tag_suggestion.endpoint = env_config.tag_suggest_url

    return app_config, env_config


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    """Read a YAML mapping from disk."""
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
            source=config_file,
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
            source=config_file,
        ) from e

    if config_dict is None:
        return {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a YAML mapping at the top level",
            suggestions=["Copy config.example.yaml to config.yaml and edit it"],
            source=config_file,
        )

    return config_dict


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find the configuration file.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Path to the file, or None when no default location exists

    Raises:
        ConfigurationError: If an explicit path does not exist
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Omit --config to run with built-in defaults",
                ],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate

    return None
