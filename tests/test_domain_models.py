"""Unit tests for domain models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from helpmatch.domain.models import (
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

NOW = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


def match_data(**overrides):
    data = {
        "id": "r1__h1",
        "request_id": "r1",
        "requester_id": "u0",
        "helper_id": "h1",
        "score": 0.9,
        "reasons": ["Shared tags: coding"],
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return data


class TestUser:
    """Tests for User model."""

    def test_valid_user(self):
        user = User(id="u1", name="Ada", tags=["coding"])
        assert user.bio == ""
        assert user.username is None

    def test_camel_case_input(self):
        user = User.model_validate({"id": "u1", "name": "Ada", "createdAt": "2025-03-10T09:00:00Z"})
        assert user.created_at == NOW

    def test_strips_id(self):
        assert User(id=" u1 ", name="Ada").id == "u1"

    def test_rejects_blank_id(self):
        with pytest.raises(ValidationError):
            User(id="   ", name="Ada")

    def test_rejects_match_id_separator(self):
        with pytest.raises(ValidationError, match="cannot contain"):
            User(id="b__c", name="Ada")

    def test_null_bio_becomes_empty(self):
        assert User(id="u1", name="Ada", bio=None).bio == ""

    def test_naive_datetime_converted_to_utc(self):
        user = User(id="u1", name="Ada", created_at=datetime(2025, 3, 10, 9, 0, 0))
        assert user.created_at.tzinfo == timezone.utc


class TestHelpRequest:
    """Tests for HelpRequest model."""

    def test_defaults(self):
        request = HelpRequest(id="r1", requester_id="u0", title="Help")
        assert request.urgency == Urgency.MEDIUM
        assert request.format == RequestFormat.CHAT
        assert request.tags == []

    def test_rejects_unknown_urgency(self):
        with pytest.raises(ValidationError):
            HelpRequest(id="r1", requester_id="u0", title="Help", urgency="extreme")

    def test_rejects_unknown_format(self):
        with pytest.raises(ValidationError):
            HelpRequest(id="r1", requester_id="u0", title="Help", format="fax")

    @pytest.mark.parametrize("field", ["id", "requester_id"])
    def test_rejects_match_id_separator(self, field):
        data = {"id": "r1", "requester_id": "u0", "title": "Help"}
        data[field] = "a__b"
        with pytest.raises(ValidationError, match="cannot contain"):
            HelpRequest(**data)

    def test_strips_ids(self):
        request = HelpRequest(id=" r1 ", requester_id=" u0 ", title="Help")
        assert (request.id, request.requester_id) == ("r1", "u0")


class TestMatch:
    """Tests for Match model."""

    def test_valid_match(self):
        match = Match(**match_data())
        assert match.state == MatchState.SUGGESTED
        assert match.connection_payload is None
        assert not match.is_progressed

    def test_score_rounded_to_four_places(self):
        assert Match(**match_data(score=0.123449)).score == 0.1234

    @pytest.mark.parametrize("score", [-0.01, 1.01])
    def test_score_out_of_range(self, score):
        with pytest.raises(ValidationError):
            Match(**match_data(score=score))

    def test_at_most_four_reasons(self):
        with pytest.raises(ValidationError):
            Match(**match_data(reasons=["a", "b", "c", "d", "e"]))

    @pytest.mark.parametrize("state", [MatchState.SUGGESTED, MatchState.REQUESTED, MatchState.DECLINED])
    def test_payload_only_on_accepted(self, state):
        with pytest.raises(ValidationError, match="only allowed on accepted"):
            Match(**match_data(state=state, connection_payload={"message": "hi"}))

    def test_accepted_with_payload(self):
        match = Match(**match_data(state="accepted", connection_payload={"message": "hi", "nextStep": "Coffee"}))
        assert match.connection_payload == ConnectionPayload(message="hi", next_step="Coffee")
        assert match.is_progressed

    def test_progressed_states(self):
        assert PROGRESSED_STATES == {MatchState.REQUESTED, MatchState.ACCEPTED, MatchState.DECLINED}

    def test_evolve_validates(self):
        match = Match(**match_data())
        with pytest.raises(ValidationError):
            match.evolve(connection_payload={"message": "hi"})

    def test_evolve_returns_copy(self):
        match = Match(**match_data())
        evolved = match.evolve(state=MatchState.REQUESTED)

        assert evolved.state == MatchState.REQUESTED
        assert match.state == MatchState.SUGGESTED

    def test_to_public_uses_camel_case(self):
        public = Match(**match_data(state="accepted", connection_payload={"message": "hi"})).to_public()

        assert public["requestId"] == "r1"
        assert public["helperId"] == "h1"
        assert public["state"] == "accepted"
        assert public["connectionPayload"] == {"message": "hi"}
        assert public["createdAt"] == "2025-03-10T09:00:00Z"

    def test_to_public_omits_missing_payload(self):
        assert "connectionPayload" not in Match(**match_data()).to_public()


class TestConnectionMessage:
    """Tests for ConnectionMessage model."""

    def test_valid_message(self):
        message = ConnectionMessage(
            id="msg_1", match_id="r1__h1", sender_id="h1", sender_role="helper", text="Hi", created_at=NOW
        )
        assert message.sender_role == SenderRole.HELPER

    def test_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            ConnectionMessage(
                id="msg_1", match_id="r1__h1", sender_id="h1", sender_role="admin", text="Hi", created_at=NOW
            )

    def test_rejects_empty_text(self):
        with pytest.raises(ValidationError):
            ConnectionMessage(
                id="msg_1", match_id="r1__h1", sender_id="h1", sender_role="helper", text="", created_at=NOW
            )
