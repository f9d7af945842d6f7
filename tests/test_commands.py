"""Unit tests for request-layer command parsing."""

import pytest

from helpmatch.domain.models import MatchState, SenderRole
from helpmatch.matching import (
    GenerateMatchesCommand,
    InvalidInputError,
    PostMessageCommand,
    RespondCommand,
    parse_command,
)


class TestGenerateMatchesCommand:
    def test_camel_case(self):
        command = parse_command(GenerateMatchesCommand, {"requestId": " r1 ", "topN": 3})
        assert command.request_id == "r1"
        assert command.top_n == 3

    def test_top_n_optional(self):
        assert parse_command(GenerateMatchesCommand, {"requestId": "r1"}).top_n is None

    def test_unknown_keys_ignored(self):
        command = parse_command(GenerateMatchesCommand, {"requestId": "r1", "extra": True})
        assert command.request_id == "r1"

    def test_errors_name_the_field(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_command(GenerateMatchesCommand, {"topN": 3})

        assert exc_info.value.kind == "validation"
        assert any("requestId" in error or "request_id" in error for error in exc_info.value.errors)

    def test_non_dict_payload(self):
        with pytest.raises(InvalidInputError, match="expects an object"):
            parse_command(GenerateMatchesCommand, ["r1"])


class TestRespondCommand:
    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"decision": "accepted"}, MatchState.ACCEPTED),
            ({"decision": "declined"}, MatchState.DECLINED),
            ({"action": "accept"}, MatchState.ACCEPTED),
            ({"action": "decline"}, MatchState.DECLINED),
            ({"decision": "accepted", "action": "accept"}, MatchState.ACCEPTED),
        ],
    )
    def test_target_state(self, payload, expected):
        assert parse_command(RespondCommand, payload).target_state == expected

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"decision": "maybe"},
            {"action": "later"},
            {"decision": "accepted", "action": "decline"},
        ],
    )
    def test_invalid(self, payload):
        with pytest.raises(InvalidInputError):
            parse_command(RespondCommand, payload)

    def test_connection_payload(self):
        command = parse_command(
            RespondCommand,
            {"action": "accept", "connectionPayload": {"message": "hi", "nextStep": "Coffee at 3"}},
        )
        assert command.connection_payload.message == "hi"
        assert command.connection_payload.next_step == "Coffee at 3"


class TestPostMessageCommand:
    def test_strips_fields(self):
        command = parse_command(
            PostMessageCommand, {"senderId": " h1 ", "senderRole": "helper", "text": "  see you  "}
        )
        assert command.sender_id == "h1"
        assert command.sender_role == SenderRole.HELPER
        assert command.text == "see you"

    @pytest.mark.parametrize(
        "payload",
        [
            {"senderId": "h1", "senderRole": "helper", "text": "   "},
            {"senderId": "", "senderRole": "helper", "text": "hi"},
            {"senderId": "h1", "senderRole": "admin", "text": "hi"},
            {"senderId": "h1", "text": "hi"},
        ],
    )
    def test_invalid(self, payload):
        with pytest.raises(InvalidInputError):
            parse_command(PostMessageCommand, payload)
