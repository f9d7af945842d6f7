"""Structured logging for the matcher.

Loggers obtained through ``get_logger`` stamp a ``component`` field on every
record so match generation, lifecycle transitions and tag suggestion can be
filtered apart in the JSON output.
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its component field with per-call extras."""

    def process(self, msg, kwargs):
        """Merge adapter extra with call extra; call extra wins."""
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally tagged with a default component.

    Args:
        name: Logger name (typically __name__)
        component: Component identifier injected into all records

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="lifecycle")
        >>> logger.info("Match requested", extra={"event": "lifecycle.transition.applied"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
