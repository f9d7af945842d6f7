"""Input models for the operations a request layer can invoke.

Each command validates raw caller input with pydantic. ``parse_command``
converts schema failures into InvalidInputError so malformed input is always
rejected before any state is touched.
"""

from typing import Any, Dict, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from helpmatch.config.exceptions import format_validation_errors
from helpmatch.domain.models import ConnectionPayload, MatchState, SenderRole

from .exceptions import InvalidInputError

CommandT = TypeVar("CommandT", bound=BaseModel)

_ACTION_TO_DECISION = {
    "accept": MatchState.ACCEPTED,
    "decline": MatchState.DECLINED,
}


class Command(BaseModel):
    """Base command: camelCase or snake_case keys, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class GenerateMatchesCommand(Command):
    """Generate (or regenerate) the shortlist for a request."""

    request_id: str = Field(..., min_length=1)
    top_n: Optional[int] = Field(None, description="Shortlist size, clamped by the service")

    @field_validator("request_id")
    @classmethod
    def strip_request_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("requestId cannot be empty")
        return stripped


class RespondCommand(Command):
    """Accept or decline a requested match.

    Takes either ``decision`` (accepted|declined) or ``action`` (accept|decline).
    """

    decision: Optional[Literal["accepted", "declined"]] = None
    action: Optional[Literal["accept", "decline"]] = None
    connection_payload: Optional[ConnectionPayload] = None

    @model_validator(mode="after")
    def require_decision(self):
        if self.decision is None and self.action is None:
            raise ValueError("Provide decision (accepted|declined) or action (accept|decline)")
        if self.decision is not None and self.action is not None:
            if MatchState(self.decision) != _ACTION_TO_DECISION[self.action]:
                raise ValueError("decision and action disagree")
        return self

    @property
    def target_state(self) -> MatchState:
        if self.decision is not None:
            return MatchState(self.decision)
        return _ACTION_TO_DECISION[self.action]


class PostMessageCommand(Command):
    """Post a message on an accepted match."""

    sender_id: str = Field(..., min_length=1)
    sender_role: SenderRole
    text: str

    @field_validator("sender_id")
    @classmethod
    def strip_sender(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("senderId is required")
        return stripped

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("text is required")
        return stripped


def parse_command(command_cls: Type[CommandT], payload: Optional[Dict[str, Any]]) -> CommandT:
    """Validate raw input into a command.

    Raises:
        InvalidInputError: With one message per failing field
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidInputError(f"{command_cls.__name__} expects an object, got {type(payload).__name__}")

    try:
        return command_cls.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {command_cls.__name__}", errors=format_validation_errors(e)) from e
