"""Unit tests for messaging on accepted matches."""

import re

import pytest

from helpmatch.config.models import MatchingConfig
from helpmatch.connections import ConnectionService, make_message_id
from helpmatch.domain.models import SenderRole
from helpmatch.matching import InvalidInputError, InvalidTransitionError, MatchingService, NotFoundError
from tests.helpers import FIXED_NOW, later, seeded_store


@pytest.fixture
def store():
    store = seeded_store()
    service = MatchingService(store, MatchingConfig(max_workers=1))
    service.generate_matches({"requestId": "r1"}, now=FIXED_NOW)
    service.request_match("r1__h1", now=later(1))
    service.respond_to_match("r1__h1", {"action": "accept"}, now=later(2))
    return store


@pytest.fixture
def connections(store):
    return ConnectionService(store)


class TestPostMessage:
    """Tests for ConnectionService.post_message."""

    def test_helper_posts(self, connections):
        message = connections.post_message(
            "r1__h1", {"senderId": "h1", "senderRole": "helper", "text": " Happy to help! "}, now=later(3)
        )

        assert message.match_id == "r1__h1"
        assert message.sender_role == SenderRole.HELPER
        assert message.text == "Happy to help!"
        assert message.created_at == later(3)

    def test_requester_posts(self, connections):
        message = connections.post_message("r1__h1", {"senderId": "u0", "senderRole": "requester", "text": "Thanks"})
        assert message.sender_id == "u0"

    def test_posting_bumps_match_updated_at(self, connections, store):
        connections.post_message("r1__h1", {"senderId": "u0", "senderRole": "requester", "text": "Hi"}, now=later(9))
        assert store.get_match("r1__h1").updated_at == later(9)

    def test_wrong_role_for_sender(self, connections):
        with pytest.raises(InvalidInputError, match="not a participant"):
            connections.post_message("r1__h1", {"senderId": "u0", "senderRole": "helper", "text": "Hi"})

    def test_outsider(self, connections):
        with pytest.raises(InvalidInputError):
            connections.post_message("r1__h1", {"senderId": "h2", "senderRole": "helper", "text": "Hi"})

    def test_match_not_accepted(self, connections):
        with pytest.raises(InvalidTransitionError, match="match not accepted yet") as exc_info:
            connections.post_message("r1__h2", {"senderId": "h2", "senderRole": "helper", "text": "Hi"})
        assert exc_info.value.current_state == "suggested"

    def test_unknown_match(self, connections):
        with pytest.raises(NotFoundError):
            connections.post_message("r1__zz", {"senderId": "h1", "senderRole": "helper", "text": "Hi"})

    def test_blank_text(self, connections):
        with pytest.raises(InvalidInputError):
            connections.post_message("r1__h1", {"senderId": "h1", "senderRole": "helper", "text": "  "})


class TestListMessages:
    """Tests for ConnectionService.list_messages."""

    def test_oldest_first(self, connections):
        connections.post_message("r1__h1", {"senderId": "h1", "senderRole": "helper", "text": "second"}, now=later(20))
        connections.post_message("r1__h1", {"senderId": "u0", "senderRole": "requester", "text": "first"}, now=later(10))

        assert [m.text for m in connections.list_messages("r1__h1")] == ["first", "second"]

    def test_empty_conversation(self, connections):
        assert connections.list_messages("r1__h1") == []

    def test_unknown_match(self, connections):
        with pytest.raises(NotFoundError):
            connections.list_messages("r1__zz")


def test_message_ids_are_unique_and_prefixed():
    ids = {make_message_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(re.fullmatch(r"msg_[0-9a-f]{12}", message_id) for message_id in ids)
