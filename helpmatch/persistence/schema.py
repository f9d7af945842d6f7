"""Database schema definition and ORM models.

ORM models convert to and from the pydantic domain models. Timestamps are
stored as fixed-width ISO 8601 UTC strings so lexical order equals time order.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, Float, ForeignKey, Index, String, Text, UniqueConstraint, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from helpmatch.domain.models import ConnectionMessage, HelpRequest, Match, User
from helpmatch.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    return format_timestamp(dt, include_microseconds=True)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return parse_iso_datetime(value)


class UserModel(Base):
    """ORM model for the users table."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, nullable=False)
    username = Column(String(255), nullable=True, unique=True)
    name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    timezone = Column(String(64), nullable=True)
    created_at = Column(String(50), nullable=True)
    updated_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_users_name", "name"),)

    def to_domain(self) -> User:
        return User(
            id=self.id,
            username=self.username,
            name=self.name,
            bio=self.bio or "",
            tags=list(self.tags or []),
            timezone=self.timezone,
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, user: User) -> "UserModel":
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            bio=user.bio,
            tags=list(user.tags),
            timezone=user.timezone,
            created_at=_format_datetime(user.created_at),
            updated_at=_format_datetime(user.updated_at),
        )


class HelpRequestModel(Base):
    """ORM model for the requests table."""

    __tablename__ = "requests"

    id = Column(String(64), primary_key=True, nullable=False)
    requester_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    urgency = Column(String(10), nullable=False)
    format = Column(String(10), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(String(50), nullable=True)
    updated_at = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_requests_requester", "requester_id"),
        Index("idx_requests_created", "created_at"),
    )

    def to_domain(self) -> HelpRequest:
        return HelpRequest(
            id=self.id,
            requester_id=self.requester_id,
            title=self.title,
            description=self.description or "",
            urgency=self.urgency,
            format=self.format,
            tags=list(self.tags or []),
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, request: HelpRequest) -> "HelpRequestModel":
        return cls(
            id=request.id,
            requester_id=request.requester_id,
            title=request.title,
            description=request.description,
            urgency=request.urgency.value,
            format=request.format.value,
            tags=list(request.tags),
            created_at=_format_datetime(request.created_at),
            updated_at=_format_datetime(request.updated_at),
        )


class MatchModel(Base):
    """ORM model for the matches table.

    The primary key is the deterministic match id; the unique constraint on
    (request_id, helper_id) backs the one-match-per-pair invariant.
    """

    __tablename__ = "matches"

    id = Column(String(160), primary_key=True, nullable=False)
    request_id = Column(String(64), nullable=False)
    requester_id = Column(String(64), nullable=False)
    helper_id = Column(String(64), nullable=False)
    score = Column(Float, nullable=False)
    reasons = Column(JSON, nullable=False, default=list)
    state = Column(String(20), nullable=False)
    connection_payload = Column(JSON(none_as_null=True), nullable=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("request_id", "helper_id", name="uq_matches_request_helper"),
        Index("idx_matches_helper_state", "helper_id", "state"),
        Index("idx_matches_requester_state", "requester_id", "state"),
    )

    def to_domain(self) -> Match:
        return Match(
            id=self.id,
            request_id=self.request_id,
            requester_id=self.requester_id,
            helper_id=self.helper_id,
            score=self.score,
            reasons=list(self.reasons or []),
            state=self.state,
            connection_payload=self.connection_payload,
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, match: Match) -> "MatchModel":
        return cls(
            id=match.id,
            request_id=match.request_id,
            requester_id=match.requester_id,
            helper_id=match.helper_id,
            score=match.score,
            reasons=list(match.reasons),
            state=match.state.value,
            connection_payload=(
                match.connection_payload.model_dump() if match.connection_payload is not None else None
            ),
            created_at=_format_datetime(match.created_at),
            updated_at=_format_datetime(match.updated_at),
        )


class MessageModel(Base):
    """ORM model for the messages table."""

    __tablename__ = "messages"

    id = Column(String(64), primary_key=True, nullable=False)
    match_id = Column(String(160), ForeignKey("matches.id"), nullable=False)
    sender_id = Column(String(64), nullable=False)
    sender_role = Column(String(20), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_messages_match_created", "match_id", "created_at"),)

    def to_domain(self) -> ConnectionMessage:
        return ConnectionMessage(
            id=self.id,
            match_id=self.match_id,
            sender_id=self.sender_id,
            sender_role=self.sender_role,
            text=self.text,
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, message: ConnectionMessage) -> "MessageModel":
        return cls(
            id=message.id,
            match_id=message.match_id,
            sender_id=message.sender_id,
            sender_role=message.sender_role.value,
            text=message.text,
            created_at=_format_datetime(message.created_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(sorted(tables))}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
