"""Errors surfaced by the matching core.

Three categories reach callers:
- InvalidInputError: malformed or missing input, raised before any state changes
- NotFoundError: a referenced request, user or match does not exist
- InvalidTransitionError: a lifecycle transition the current state does not allow

All inherit from MatchingError so a request layer can map them to responses
with a single except clause, using ``kind``.
"""

from typing import List, Optional


class MatchingError(Exception):
    """Base exception for all matching-core errors."""

    kind = "error"


class InvalidInputError(MatchingError):
    """Malformed or missing input."""

    kind = "validation"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class NotFoundError(MatchingError):
    """A referenced entity does not exist."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidTransitionError(MatchingError):
    """A lifecycle transition was attempted from a state that does not permit it.

    The message always names the current state so callers can decide whether
    to refresh, retry or show it to the user.
    """

    kind = "conflict"

    def __init__(self, current_state: str, target_state: Optional[str] = None, message: Optional[str] = None):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message or f"invalid transition from {current_state}")
