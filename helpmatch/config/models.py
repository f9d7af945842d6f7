"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Ranking and regeneration settings."""

    default_top_n: int = Field(5, ge=1, description="Shortlist size when the caller gives none")
    min_top_n: int = Field(1, ge=1, description="Lower clamp bound for a requested shortlist size")
    max_top_n: int = Field(20, ge=1, le=100, description="Upper clamp bound for a shortlist size")
    max_workers: int = Field(
        4, ge=1, le=64, description="Thread pool size for per-match reconciliation"
    )

    @model_validator(mode="after")
    def validate_bounds(self):
        """Ensure min <= default <= max."""
        if self.min_top_n > self.max_top_n:
            raise ValueError(
                f"min_top_n ({self.min_top_n}) cannot exceed max_top_n ({self.max_top_n})"
            )
        if not self.min_top_n <= self.default_top_n <= self.max_top_n:
            raise ValueError(
                f"default_top_n ({self.default_top_n}) must lie between "
                f"min_top_n ({self.min_top_n}) and max_top_n ({self.max_top_n})"
            )
        return self


class TagSuggestionConfig(BaseModel):
    """Remote tag suggestion settings. The heuristic fallback is always available."""

    enabled: bool = Field(False, description="Try the remote suggestion service first")
    endpoint: Optional[str] = Field(None, description="URL of the remote suggestion service")
    timeout_seconds: int = Field(10, ge=1, le=120, description="HTTP timeout for the remote call")
    max_tags: int = Field(3, ge=1, le=10, description="Maximum tags returned per suggestion")

    @field_validator("endpoint")
    @classmethod
    def strip_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank endpoints as unset."""
        if v is None:
            return None
        stripped = v.strip()
        if stripped and not stripped.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got: {stripped}")
        return stripped or None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the matcher."""

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    tag_suggestion: TagSuggestionConfig = Field(default_factory=TagSuggestionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
