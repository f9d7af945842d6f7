"""Configuration errors and pydantic error formatting.

``format_validation_errors`` is shared with seed loading and request-layer
commands, which report schema failures the same way configuration failures
are reported.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

ENVIRONMENT_SOURCE = "environment"


def format_validation_errors(error: ValidationError) -> List[str]:
    """Turn a pydantic ValidationError into one readable line per failure.

    Args:
        error: Pydantic validation error

    Returns:
        List of messages of the form ``"field -> sub: message"``
    """
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or "(root)"
        if item["type"] == "missing":
            messages.append(f"Missing required field: {field_path}")
        elif "enum" in item["type"] or item["type"] == "literal_error":
            messages.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            messages.append(f"{field_path}: {item['msg']}")
    return messages


class ConfigurationError(Exception):
    """
    Raised when the matcher cannot start from its configuration.

    ``source`` names where the bad value came from: a config file path or
    ``"environment"`` for environment variables. The CLI prints the rendered
    message and exits with the configuration error code.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        source: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            message: Primary error message
            errors: Individual validation failures
            suggestions: Hints for fixing them
            source: Config file path or "environment"
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.source = str(source) if source is not None else None
        super().__init__(self._render())

    @classmethod
    def from_validation_error(
        cls,
        error: ValidationError,
        source: Optional[Union[str, Path]] = None,
        suggestions: Iterable[str] = (),
    ) -> "ConfigurationError":
        return cls(
            "Configuration validation failed",
            errors=format_validation_errors(error),
            suggestions=list(suggestions),
            source=source,
        )

    def _render(self) -> str:
        lines = [self.message if self.source is None else f"{self.message} (source: {self.source})"]

        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(lines)
