"""Data access layer (repositories) for persistence operations.

This module provides repository classes for users, help requests, matches
and connection messages. Repositories encapsulate database operations and
return domain models rather than ORM models.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from helpmatch.domain.models import ConnectionMessage, ConnectionPayload, HelpRequest, Match, MatchState, User
from helpmatch.matching.lifecycle import reconcile_suggestion

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import HelpRequestModel, MatchModel, MessageModel, UserModel, _format_datetime

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user profiles."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve a user by id, or None."""
        try:
            user_model = self.session.get(UserModel, user_id)
            return user_model.to_domain() if user_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def list_except(self, exclude_user_id: str) -> List[User]:
        """All users other than ``exclude_user_id``, ordered by id.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(UserModel).where(UserModel.id != exclude_user_id).order_by(UserModel.id)
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing candidate users: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list users: {e}") from e

    def upsert(self, user: User) -> User:
        """Insert a new user or replace an existing one.

        Raises:
            DataIntegrityError: If the username is already taken
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(UserModel, user.id)
            if existing:
                existing.username = user.username
                existing.name = user.name
                existing.bio = user.bio
                existing.tags = list(user.tags)
                existing.timezone = user.timezone
                existing.created_at = _format_datetime(user.created_at)
                existing.updated_at = _format_datetime(user.updated_at)
                self.session.flush()
                return existing.to_domain()

            user_model = UserModel.from_domain(user)
            self.session.add(user_model)
            self.session.flush()
            return user_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting user {user.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert user due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting user {user.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert user: {e}") from e


class HelpRequestRepository:
    """Repository for help requests."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, request_id: str) -> Optional[HelpRequest]:
        try:
            request_model = self.session.get(HelpRequestModel, request_id)
            return request_model.to_domain() if request_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving request {request_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve request: {e}") from e

    def upsert(self, request: HelpRequest) -> HelpRequest:
        """Insert a new help request or replace an existing one.

        Raises:
            DataIntegrityError: If the requester does not exist
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(HelpRequestModel, request.id)
            if existing:
                existing.requester_id = request.requester_id
                existing.title = request.title
                existing.description = request.description
                existing.urgency = request.urgency.value
                existing.format = request.format.value
                existing.tags = list(request.tags)
                existing.created_at = _format_datetime(request.created_at)
                existing.updated_at = _format_datetime(request.updated_at)
                self.session.flush()
                return existing.to_domain()

            request_model = HelpRequestModel.from_domain(request)
            self.session.add(request_model)
            self.session.flush()
            return request_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting request {request.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert request due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting request {request.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert request: {e}") from e


class MatchRepository:
    """Repository for matches.

    ``save_suggestion`` and ``compare_and_set`` are written as conditional
    UPDATE statements so the database, not the session, decides which writer
    wins.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, match_id: str) -> Optional[Match]:
        try:
            stmt = select(MatchModel).where(MatchModel.id == match_id).execution_options(populate_existing=True)
            match_model = self.session.execute(stmt).scalar_one_or_none()
            return match_model.to_domain() if match_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving match {match_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve match: {e}") from e

    def get_by_request(self, request_id: str) -> List[Match]:
        """Matches for a request, best score first (ties by helper id).

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(MatchModel)
                .where(MatchModel.request_id == request_id)
                .order_by(MatchModel.score.desc(), MatchModel.helper_id.asc())
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving matches for request {request_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve matches: {e}") from e

    def get_by_helper(self, helper_id: str, states: Optional[Iterable[MatchState]] = None) -> List[Match]:
        """A helper's matches, most recently updated first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(MatchModel).where(MatchModel.helper_id == helper_id)
            if states is not None:
                stmt = stmt.where(MatchModel.state.in_([MatchState(s).value for s in states]))
            stmt = stmt.order_by(MatchModel.updated_at.desc(), MatchModel.created_at.desc())
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving matches for helper {helper_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve matches: {e}") from e

    def save_suggestion(self, fresh: Match) -> Match:
        """Store a regenerated suggestion unless the match has progressed.

        1. Conditionally overwrite the row if it is still ``suggested``
           (``created_at`` is left alone)
        2. Otherwise return the existing row, which must have progressed
        3. Otherwise insert ``fresh``

        Raises:
            DataIntegrityError: If a concurrent writer inserted the row first
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(MatchModel)
                .where(
                    MatchModel.id == fresh.id,
                    MatchModel.state == MatchState.SUGGESTED.value,
                )
                .values(
                    score=fresh.score,
                    reasons=list(fresh.reasons),
                    updated_at=_format_datetime(fresh.updated_at),
                )
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            if result.rowcount == 1:
                return self.get_by_id(fresh.id)

            existing = self.get_by_id(fresh.id)
            if existing is not None:
                return reconcile_suggestion(existing, fresh)

            match_model = MatchModel.from_domain(fresh)
            self.session.add(match_model)
            self.session.flush()
            return match_model.to_domain()

        except IntegrityError as e:
            logger.warning(f"Concurrent insert for match {fresh.id}: {e}")
            raise DataIntegrityError(f"Match {fresh.id} was inserted concurrently") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving suggestion {fresh.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save suggestion: {e}") from e

    def compare_and_set(
        self,
        match_id: str,
        expected_state: MatchState,
        new_state: MatchState,
        updated_at: datetime,
        connection_payload: Optional[ConnectionPayload] = None,
    ) -> Optional[Match]:
        """Move a match between states only if it is still in ``expected_state``.

        Returns:
            Updated Match, or None if the row is missing or in another state

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(MatchModel)
                .where(
                    MatchModel.id == match_id,
                    MatchModel.state == MatchState(expected_state).value,
                )
                .values(
                    state=MatchState(new_state).value,
                    updated_at=_format_datetime(updated_at),
                    connection_payload=connection_payload.model_dump() if connection_payload else None,
                )
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                return None
            return self.get_by_id(match_id)

        except SQLAlchemyError as e:
            logger.error(f"Error updating state of match {match_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update match state: {e}") from e

    def touch(self, match_id: str, updated_at: datetime) -> None:
        """Update only the updated_at timestamp.

        Raises:
            RecordNotFoundError: If match_id doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(MatchModel)
                .where(MatchModel.id == match_id)
                .values(updated_at=_format_datetime(updated_at))
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                raise RecordNotFoundError(f"Match {match_id} not found")

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error touching match {match_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update match: {e}") from e


class MessageRepository:
    """Repository for messages posted on accepted matches."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, message: ConnectionMessage) -> ConnectionMessage:
        """Insert a message.

        Raises:
            DataIntegrityError: If the id is reused or the match is missing
            PersistenceError: If database error occurs
        """
        try:
            message_model = MessageModel.from_domain(message)
            self.session.add(message_model)
            self.session.flush()
            return message_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error creating message {message.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create message due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating message {message.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create message: {e}") from e

    def get_by_match(self, match_id: str) -> List[ConnectionMessage]:
        """Messages on a match, oldest first."""
        try:
            stmt = (
                select(MessageModel)
                .where(MessageModel.match_id == match_id)
                .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving messages for match {match_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve messages: {e}") from e
