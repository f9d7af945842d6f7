"""Service facade combining ranking, regeneration and the lifecycle.

This is the surface a request layer (HTTP routes, the CLI) calls. It
validates input, resolves entities through the store, and delegates to the
pure ranking code, the regenerator and the state machine.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from helpmatch.config.models import MatchingConfig
from helpmatch.domain.models import PROGRESSED_STATES, Match
from helpmatch.logging import get_logger
from helpmatch.logging.context import log_context

from .commands import GenerateMatchesCommand, RespondCommand, parse_command
from .exceptions import InvalidInputError, NotFoundError
from .lifecycle import MatchLifecycle
from .ranker import clamp_top_n
from .regeneration import MatchRegenerator
from .store import MatchStore

logger = get_logger(__name__, component="matching")


class MatchingService:
    """Entry point for match generation, lifecycle transitions and lookups."""

    def __init__(self, store: MatchStore, config: Optional[MatchingConfig] = None):
        """Initialize MatchingService.

        Args:
            store: Storage port
            config: Matching configuration (defaults apply when omitted)
        """
        self.store = store
        self.config = config or MatchingConfig()
        self.lifecycle = MatchLifecycle(store)
        self.regenerator = MatchRegenerator(store, max_workers=self.config.max_workers)

    def generate_matches(
        self,
        command: Union[GenerateMatchesCommand, Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> List[Match]:
        """Rank helpers for a request and reconcile the result with stored matches.

        Args:
            command: GenerateMatchesCommand or raw ``{"requestId": ..., "topN": ...}``
            now: Timestamp for fresh records

        Returns:
            Ordered match records, best first

        Raises:
            InvalidInputError: Missing requestId or non-numeric topN
            NotFoundError: Request or requester does not exist
        """
        if not isinstance(command, GenerateMatchesCommand):
            command = parse_command(GenerateMatchesCommand, command)

        top_n = self._clamp(command.top_n)

        with log_context(request_id=command.request_id):
            request = self.store.get_request(command.request_id)
            if request is None:
                raise NotFoundError("request", command.request_id)

            requester = self.store.get_user(request.requester_id)
            if requester is None:
                raise NotFoundError("requester", request.requester_id)

            candidates = self.store.list_candidates(exclude_user_id=requester.id)
            return self.regenerator.regenerate(request, requester, candidates, top_n, now=now)

    def request_match(self, match_id: str, now: Optional[datetime] = None) -> Match:
        """Requester asks a suggested helper for help (suggested -> requested)."""
        return self.lifecycle.request(self._require_id(match_id, "matchId"), now=now)

    def respond_to_match(
        self,
        match_id: str,
        command: Union[RespondCommand, Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> Match:
        """Helper accepts or declines a request (requested -> accepted|declined)."""
        match_id = self._require_id(match_id, "matchId")
        if not isinstance(command, RespondCommand):
            command = parse_command(RespondCommand, command)

        return self.lifecycle.respond(
            match_id,
            command.target_state,
            connection_payload=command.connection_payload,
            now=now,
        )

    def get_match(self, match_id: str) -> Match:
        """Return a match or raise NotFoundError."""
        match_id = self._require_id(match_id, "matchId")
        match = self.store.get_match(match_id)
        if match is None:
            raise NotFoundError("match", match_id)
        return match

    def matches_for_request(self, request_id: str) -> List[Match]:
        """Stored matches for a request, best score first."""
        request_id = self._require_id(request_id, "requestId")
        if self.store.get_request(request_id) is None:
            raise NotFoundError("request", request_id)
        return self.store.find_by_request(request_id)

    def inbox(self, helper_id: str) -> List[Match]:
        """A helper's requested, accepted and declined matches, newest first."""
        helper_id = self._require_id(helper_id, "helperId")
        return self.store.find_by_helper(helper_id, states=PROGRESSED_STATES)

    def _clamp(self, top_n: Optional[int]) -> int:
        try:
            return clamp_top_n(
                top_n,
                default=self.config.default_top_n,
                lower=self.config.min_top_n,
                upper=self.config.max_top_n,
            )
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"topN must be an integer, got: {top_n!r}") from e

    @staticmethod
    def _require_id(value: Optional[str], name: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(f"{name} is required")
        return value.strip()
