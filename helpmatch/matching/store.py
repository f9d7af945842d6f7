"""Storage port for the matching core, plus an in-memory implementation.

The core only needs a handful of primitives: point lookups, a not-equal scan
for the candidate pool, explicit match queries, one conditional upsert for
regenerated suggestions and one compare-and-set for lifecycle transitions.
``helpmatch.persistence.SqlMatchStore`` implements the same port on top of
SQLAlchemy.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from helpmatch.domain.models import (
    PROGRESSED_STATES,
    ConnectionMessage,
    ConnectionPayload,
    HelpRequest,
    Match,
    MatchState,
    User,
)

from .lifecycle import reconcile_suggestion


class MatchStore(ABC):
    """Storage operations required by the matching core."""

    # Users and requests

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user, or None."""

    @abstractmethod
    def get_request(self, request_id: str) -> Optional[HelpRequest]:
        """Return the help request, or None."""

    @abstractmethod
    def list_candidates(self, exclude_user_id: str) -> List[User]:
        """Return every user except ``exclude_user_id``, ordered by id."""

    @abstractmethod
    def add_user(self, user: User) -> User:
        """Insert or replace a user."""

    @abstractmethod
    def add_request(self, request: HelpRequest) -> HelpRequest:
        """Insert or replace a help request."""

    # Matches

    @abstractmethod
    def get_match(self, match_id: str) -> Optional[Match]:
        """Return the match, or None."""

    @abstractmethod
    def find_by_request(self, request_id: str) -> List[Match]:
        """Return all matches for a request, best score first."""

    @abstractmethod
    def find_by_helper(self, helper_id: str, states: Optional[Iterable[MatchState]] = None) -> List[Match]:
        """Return a helper's matches, optionally limited to ``states``, newest first."""

    def find_active_by_request(self, request_id: str) -> List[Match]:
        """Return the progressed matches of a request, best score first."""
        return [m for m in self.find_by_request(request_id) if m.state in PROGRESSED_STATES]

    @abstractmethod
    def save_suggestion(self, fresh: Match) -> Match:
        """Atomically reconcile a freshly generated suggestion with the stored record.

        Must apply ``reconcile_suggestion`` semantics as one critical section
        per match id: a progressed record is returned untouched, anything else
        is replaced by ``fresh`` with the original ``created_at`` kept.

        Returns:
            The record now stored under ``fresh.id``
        """

    @abstractmethod
    def compare_and_set(
        self,
        match_id: str,
        expected_state: MatchState,
        new_state: MatchState,
        updated_at: datetime,
        connection_payload: Optional[ConnectionPayload] = None,
    ) -> Optional[Match]:
        """Atomically move a match from ``expected_state`` to ``new_state``.

        Returns:
            The updated match, or None if the match is missing or not in
            ``expected_state``
        """

    @abstractmethod
    def touch_match(self, match_id: str, updated_at: datetime) -> None:
        """Bump a match's ``updated_at``."""

    # Messages

    @abstractmethod
    def add_message(self, message: ConnectionMessage) -> ConnectionMessage:
        """Append a message to a match's conversation."""

    @abstractmethod
    def list_messages(self, match_id: str) -> List[ConnectionMessage]:
        """Return a match's messages, oldest first."""


def _sort_by_score(matches: List[Match]) -> List[Match]:
    return sorted(matches, key=lambda m: (-m.score, m.helper_id))


def _sort_newest_first(matches: List[Match]) -> List[Match]:
    return sorted(matches, key=lambda m: (m.updated_at, m.created_at), reverse=True)


class InMemoryMatchStore(MatchStore):
    """Dict-backed store guarded by one lock.

    Used by tests and by the CLI when no database is configured. Returned
    records are copies, so callers cannot mutate stored state.
    """

    def __init__(
        self,
        users: Optional[Iterable[User]] = None,
        requests: Optional[Iterable[HelpRequest]] = None,
    ):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._requests: Dict[str, HelpRequest] = {}
        self._matches: Dict[str, Match] = {}
        self._messages: Dict[str, List[ConnectionMessage]] = {}

        for user in users or []:
            self.add_user(user)
        for request in requests or []:
            self.add_request(request)

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    def get_request(self, request_id: str) -> Optional[HelpRequest]:
        with self._lock:
            request = self._requests.get(request_id)
            return request.model_copy(deep=True) if request else None

    def list_candidates(self, exclude_user_id: str) -> List[User]:
        with self._lock:
            return [
                user.model_copy(deep=True)
                for user_id, user in sorted(self._users.items())
                if user_id != exclude_user_id
            ]

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.model_copy(deep=True)
            return user

    def add_request(self, request: HelpRequest) -> HelpRequest:
        with self._lock:
            self._requests[request.id] = request.model_copy(deep=True)
            return request

    def get_match(self, match_id: str) -> Optional[Match]:
        with self._lock:
            match = self._matches.get(match_id)
            return match.model_copy(deep=True) if match else None

    def find_by_request(self, request_id: str) -> List[Match]:
        with self._lock:
            found = [m.model_copy(deep=True) for m in self._matches.values() if m.request_id == request_id]
        return _sort_by_score(found)

    def find_by_helper(self, helper_id: str, states: Optional[Iterable[MatchState]] = None) -> List[Match]:
        wanted = {MatchState(s) for s in states} if states is not None else None
        with self._lock:
            found = [
                m.model_copy(deep=True)
                for m in self._matches.values()
                if m.helper_id == helper_id and (wanted is None or m.state in wanted)
            ]
        return _sort_newest_first(found)

    def save_suggestion(self, fresh: Match) -> Match:
        with self._lock:
            resolved = reconcile_suggestion(self._matches.get(fresh.id), fresh)
            self._matches[fresh.id] = resolved
            return resolved.model_copy(deep=True)

    def compare_and_set(
        self,
        match_id: str,
        expected_state: MatchState,
        new_state: MatchState,
        updated_at: datetime,
        connection_payload: Optional[ConnectionPayload] = None,
    ) -> Optional[Match]:
        with self._lock:
            current = self._matches.get(match_id)
            if current is None or current.state != expected_state:
                return None

            updated = current.evolve(
                state=MatchState(new_state),
                updated_at=updated_at,
                connection_payload=connection_payload.model_dump() if connection_payload else None,
            )
            self._matches[match_id] = updated
            return updated.model_copy(deep=True)

    def touch_match(self, match_id: str, updated_at: datetime) -> None:
        with self._lock:
            current = self._matches.get(match_id)
            if current is not None:
                self._matches[match_id] = current.evolve(updated_at=updated_at)

    def add_message(self, message: ConnectionMessage) -> ConnectionMessage:
        with self._lock:
            self._messages.setdefault(message.match_id, []).append(message.model_copy(deep=True))
            return message

    def list_messages(self, match_id: str) -> List[ConnectionMessage]:
        with self._lock:
            messages = [m.model_copy(deep=True) for m in self._messages.get(match_id, [])]
        return sorted(messages, key=lambda m: m.created_at)
