"""Domain models for the help-request matcher."""

from .models import (
    MAX_REASONS,
    PROGRESSED_STATES,
    ConnectionMessage,
    ConnectionPayload,
    HelpRequest,
    Match,
    MatchState,
    RequestFormat,
    SenderRole,
    Urgency,
    User,
)

__all__ = [
    "User",
    "HelpRequest",
    "Match",
    "ConnectionPayload",
    "ConnectionMessage",
    "MatchState",
    "Urgency",
    "RequestFormat",
    "SenderRole",
    "PROGRESSED_STATES",
    "MAX_REASONS",
]
