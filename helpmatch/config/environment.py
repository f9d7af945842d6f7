"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ENVIRONMENT_SOURCE, ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/helpmatch.db"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        tag_suggest_url: Optional[str] = None,
        tag_suggest_api_key: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.tag_suggest_url = tag_suggest_url
        self.tag_suggest_api_key = tag_suggest_api_key
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - DATABASE_URL: SQLAlchemy database URL (default: sqlite:///./data/helpmatch.db)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - TAG_SUGGEST_URL: Remote tag suggestion endpoint (overrides config file)
    - TAG_SUGGEST_API_KEY: Bearer token sent to the remote suggestion endpoint
    - ENVIRONMENT: Environment label for logs (production, staging, local)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable is set to an invalid value
    """
    errors = []

    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL")
    tag_suggest_url = os.getenv("TAG_SUGGEST_URL")
    tag_suggest_api_key = os.getenv("TAG_SUGGEST_API_KEY")
    environment = os.getenv("ENVIRONMENT")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if tag_suggest_url and not tag_suggest_url.startswith(("http://", "https://")):
        errors.append(f"Invalid TAG_SUGGEST_URL: '{tag_suggest_url}'. Must be an http(s) URL.")

    if database_url is not None and not database_url.strip():
        errors.append("DATABASE_URL is set but empty")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; all of them are optional",
            ],
            source=ENVIRONMENT_SOURCE,
        )

    return EnvironmentConfig(
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        tag_suggest_url=tag_suggest_url,
        tag_suggest_api_key=tag_suggest_api_key,
        environment=environment,
    )
