"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check a raw configuration dict for settings that are valid but suspicious.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    tag_suggestion = config_dict.get("tag_suggestion", {})
    if isinstance(tag_suggestion, dict):
        if tag_suggestion.get("enabled") and not tag_suggestion.get("endpoint"):
            warning_messages.append(
                "tag_suggestion.enabled is true but no endpoint is configured; "
                "set TAG_SUGGEST_URL or every suggestion will use the local heuristic"
            )

    matching = config_dict.get("matching", {})
    if isinstance(matching, dict):
        max_workers = matching.get("max_workers", 4)
        if isinstance(max_workers, int) and max_workers > 16:
            warning_messages.append(
                f"Large matching.max_workers ({max_workers}) may exhaust database connections"
            )

        max_top_n = matching.get("max_top_n", 20)
        if isinstance(max_top_n, int) and max_top_n > 50:
            warning_messages.append(
                f"matching.max_top_n ({max_top_n}) produces long shortlists that are rarely read"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
