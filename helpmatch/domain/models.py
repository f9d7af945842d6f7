"""Core domain models for users, help requests, matches and messages.

This module defines the data structures used throughout the application:
- User: a campus member who can ask for help or be suggested as a helper
- HelpRequest: a requester's description of a need, with tags
- Match: one candidate helper's relationship to one help request
- ConnectionPayload: what the helper shares when accepting a match
- ConnectionMessage: a message exchanged on an accepted match

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), matching the records callers already consume.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MAX_REASONS = 4

# Joins request and helper ids into a match id, so it may not appear inside either
MATCH_ID_SEPARATOR = "__"


class Urgency(str, Enum):
    """How soon the requester needs help."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RequestFormat(str, Enum):
    """How the requester wants to be helped."""

    CHAT = "chat"
    CALL = "call"
    ASYNC = "async"


class MatchState(str, Enum):
    """Lifecycle state of a match."""

    SUGGESTED = "suggested"
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    DECLINED = "declined"


# States a regeneration must never overwrite
PROGRESSED_STATES = frozenset({MatchState.REQUESTED, MatchState.ACCEPTED, MatchState.DECLINED})


class SenderRole(str, Enum):
    """Which side of a match sent a message."""

    REQUESTER = "requester"
    HELPER = "helper"


def _check_identifier(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("id cannot be empty or whitespace-only")
    if MATCH_ID_SEPARATOR in stripped:
        raise ValueError(f"id cannot contain '{MATCH_ID_SEPARATOR}': {stripped}")
    return stripped


def _to_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class DomainModel(BaseModel):
    """Shared pydantic configuration for domain records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_public(self) -> Dict[str, Any]:
        """Serialize for callers: camelCase keys, ISO timestamps, no null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class User(DomainModel):
    """A campus member. Tags are the only field matching uses beyond identity."""

    id: str = Field(..., min_length=1, description="User identifier")
    name: str = Field(..., description="Display name")
    username: Optional[str] = Field(None, description="Login handle")
    bio: str = Field("", description="Free-text bio")
    tags: List[str] = Field(default_factory=list, description="Skill/interest tags")
    timezone: Optional[str] = Field(None, description="IANA timezone name")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def check_id(cls, v: str) -> str:
        """Identifiers cannot be blank or contain the match id separator."""
        return _check_identifier(v)

    @field_validator("bio", mode="before")
    @classmethod
    def default_bio(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(v)


class HelpRequest(DomainModel):
    """A requester's need. Immutable for matching purposes once created."""

    id: str = Field(..., min_length=1, description="Request identifier")
    requester_id: str = Field(..., min_length=1, description="User who asked for help")
    title: str = Field(..., description="Short title")
    description: str = Field("", description="Free-text description")
    urgency: Urgency = Field(Urgency.MEDIUM, description="low, medium or high")
    format: RequestFormat = Field(RequestFormat.CHAT, description="chat, call or async")
    tags: List[str] = Field(default_factory=list, description="Tags describing the need")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "requester_id")
    @classmethod
    def check_ids(cls, v: str) -> str:
        return _check_identifier(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(v)


class ConnectionPayload(DomainModel):
    """Contact details a helper shares when accepting a match."""

    message: Optional[str] = None
    next_step: Optional[str] = None


class Match(DomainModel):
    """A candidate helper's relationship to one help request.

    The id is derived from (request_id, helper_id), so there is at most one
    match per pair. ``connection_payload`` exists only on accepted matches.
    """

    id: str = Field(..., min_length=1, description="Deterministic match identifier")
    request_id: str = Field(..., min_length=1)
    requester_id: str = Field(..., min_length=1)
    helper_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0.0, le=1.0, description="Fit score, 4 decimal places")
    reasons: List[str] = Field(default_factory=list, max_length=MAX_REASONS)
    state: MatchState = Field(MatchState.SUGGESTED)
    connection_payload: Optional[ConnectionPayload] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("score")
    @classmethod
    def round_score(cls, v: float) -> float:
        return round(v, 4)

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)

    @model_validator(mode="after")
    def validate_payload_state(self):
        """A connection payload only exists on accepted matches."""
        if self.connection_payload is not None and self.state != MatchState.ACCEPTED:
            raise ValueError(
                f"connection_payload is only allowed on accepted matches, state is {self.state.value}"
            )
        return self

    @property
    def is_progressed(self) -> bool:
        """True once the match has left the suggested state."""
        return self.state in PROGRESSED_STATES

    def evolve(self, **changes: Any) -> "Match":
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return Match.model_validate(data)


class ConnectionMessage(DomainModel):
    """A message posted on an accepted match."""

    id: str = Field(..., min_length=1)
    match_id: str = Field(..., min_length=1)
    sender_id: str = Field(..., min_length=1)
    sender_role: SenderRole
    text: str = Field(..., min_length=1)
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)
