"""SQLAlchemy-backed MatchStore.

Each store call runs in its own ``get_session()`` transaction, so a service
call that touches several matches commits them one at a time.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from helpmatch.domain.models import ConnectionMessage, ConnectionPayload, HelpRequest, Match, MatchState, User
from helpmatch.logging import get_logger
from helpmatch.matching.store import MatchStore

from .database import get_session
from .exceptions import DataIntegrityError
from .repositories import HelpRequestRepository, MatchRepository, MessageRepository, UserRepository

logger = get_logger(__name__, component="persistence")


class SqlMatchStore(MatchStore):
    """MatchStore over the database configured by ``init_database``."""

    def get_user(self, user_id: str) -> Optional[User]:
        with get_session() as session:
            return UserRepository(session).get_by_id(user_id)

    def get_request(self, request_id: str) -> Optional[HelpRequest]:
        with get_session() as session:
            return HelpRequestRepository(session).get_by_id(request_id)

    def list_candidates(self, exclude_user_id: str) -> List[User]:
        with get_session() as session:
            return UserRepository(session).list_except(exclude_user_id)

    def add_user(self, user: User) -> User:
        with get_session() as session:
            return UserRepository(session).upsert(user)

    def add_request(self, request: HelpRequest) -> HelpRequest:
        with get_session() as session:
            return HelpRequestRepository(session).upsert(request)

    def get_match(self, match_id: str) -> Optional[Match]:
        with get_session() as session:
            return MatchRepository(session).get_by_id(match_id)

    def find_by_request(self, request_id: str) -> List[Match]:
        with get_session() as session:
            return MatchRepository(session).get_by_request(request_id)

    def find_by_helper(self, helper_id: str, states: Optional[Iterable[MatchState]] = None) -> List[Match]:
        with get_session() as session:
            return MatchRepository(session).get_by_helper(helper_id, states)

    def save_suggestion(self, fresh: Match) -> Match:
        try:
            with get_session() as session:
                return MatchRepository(session).save_suggestion(fresh)
        except DataIntegrityError:
            # Another writer inserted the row between our update and insert;
            # the retry takes the update-or-keep path against their row.
            logger.info(
                f"Retrying suggestion save for {fresh.id}",
                extra={"event": "persistence.suggestion.retry", "match_id": fresh.id},
            )
            with get_session() as session:
                return MatchRepository(session).save_suggestion(fresh)

    def compare_and_set(
        self,
        match_id: str,
        expected_state: MatchState,
        new_state: MatchState,
        updated_at: datetime,
        connection_payload: Optional[ConnectionPayload] = None,
    ) -> Optional[Match]:
        with get_session() as session:
            return MatchRepository(session).compare_and_set(
                match_id, expected_state, new_state, updated_at, connection_payload
            )

    def touch_match(self, match_id: str, updated_at: datetime) -> None:
        with get_session() as session:
            MatchRepository(session).touch(match_id, updated_at)

    def add_message(self, message: ConnectionMessage) -> ConnectionMessage:
        with get_session() as session:
            return MessageRepository(session).create(message)

    def list_messages(self, match_id: str) -> List[ConnectionMessage]:
        with get_session() as session:
            return MessageRepository(session).get_by_match(match_id)
