"""Scoped logging context.

Fields pushed here (``request_id``, ``match_id``, ``helper_id``) are copied
onto every log record emitted inside the scope by ``ContextualFilter``.
Backed by ``contextvars`` so concurrent regeneration workers do not see each
other's fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("helpmatch_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Args:
        **kwargs: Key-value pairs to add

    Returns:
        Token for ``pop_log_context``
    """
    return LogContextVar.set({**LogContextVar.get(), **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context captured by ``token``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field. Used by tests."""
    LogContextVar.set({})


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(request_id="r1"):
        ...     logger.info("Generating matches")  # carries request_id
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
