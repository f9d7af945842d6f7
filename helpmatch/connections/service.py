"""Messaging between the two sides of an accepted match."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from helpmatch.domain.models import ConnectionMessage, Match, MatchState, SenderRole
from helpmatch.logging import get_logger
from helpmatch.matching.commands import PostMessageCommand, parse_command
from helpmatch.matching.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from helpmatch.matching.store import MatchStore
from helpmatch.utils.timestamps import ensure_utc, utc_now

logger = get_logger(__name__, component="connections")


def make_message_id() -> str:
    return f"msg_{uuid4().hex[:12]}"


class ConnectionService:
    """Posts and lists messages on accepted matches."""

    def __init__(self, store: MatchStore):
        self.store = store

    def post_message(
        self,
        match_id: str,
        command: Union[PostMessageCommand, Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> ConnectionMessage:
        """Append a message to an accepted match's conversation.

        The sender must be the match's requester or helper, and the role they
        claim must be theirs. Posting bumps the match's ``updated_at``.

        Raises:
            InvalidInputError: Malformed input or a sender who is not a participant
            NotFoundError: The match does not exist
            InvalidTransitionError: The match is not accepted yet
        """
        if not isinstance(command, PostMessageCommand):
            command = parse_command(PostMessageCommand, command)

        match = self._require_match(match_id)

        if match.state != MatchState.ACCEPTED:
            raise InvalidTransitionError(match.state.value, message="match not accepted yet")

        expected_sender = match.requester_id if command.sender_role == SenderRole.REQUESTER else match.helper_id
        if command.sender_id != expected_sender:
            raise InvalidInputError("sender is not a participant in this match")

        timestamp = ensure_utc(now) if now is not None else utc_now()
        message = ConnectionMessage(
            id=make_message_id(),
            match_id=match.id,
            sender_id=command.sender_id,
            sender_role=command.sender_role,
            text=command.text,
            created_at=timestamp,
        )

        self.store.add_message(message)
        self.store.touch_match(match.id, timestamp)

        logger.info(
            f"Message posted on match {match.id}",
            extra={
                "event": "connections.message.posted",
                "match_id": match.id,
                "sender_role": command.sender_role.value,
            },
        )
        return message

    def list_messages(self, match_id: str) -> List[ConnectionMessage]:
        """Messages on a match, oldest first."""
        match = self._require_match(match_id)
        return self.store.list_messages(match.id)

    def _require_match(self, match_id: str) -> Match:
        if not isinstance(match_id, str) or not match_id.strip():
            raise InvalidInputError("matchId is required")
        match = self.store.get_match(match_id.strip())
        if match is None:
            raise NotFoundError("match", match_id)
        return match
