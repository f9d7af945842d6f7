"""Match lifecycle state machine.

    suggested -> requested -> accepted
                           -> declined

``accepted`` and ``declined`` are terminal. There are no timeouts and no
automatic reversions: a requested match stays requested until someone
responds.

Every transition is a compare-and-set against the store. Two callers racing
from the same state cannot both succeed; the loser re-reads the match and gets
an InvalidTransitionError naming the state the winner left behind.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional

from helpmatch.domain.models import ConnectionPayload, Match, MatchState
from helpmatch.logging import get_logger
from helpmatch.logging.context import log_context
from helpmatch.utils.timestamps import ensure_utc, utc_now

from .exceptions import InvalidInputError, InvalidTransitionError, NotFoundError

if TYPE_CHECKING:
    from .store import MatchStore

logger = get_logger(__name__, component="lifecycle")

TRANSITIONS: Dict[MatchState, FrozenSet[MatchState]] = {
    MatchState.SUGGESTED: frozenset({MatchState.REQUESTED}),
    MatchState.REQUESTED: frozenset({MatchState.ACCEPTED, MatchState.DECLINED}),
    MatchState.ACCEPTED: frozenset(),
    MatchState.DECLINED: frozenset(),
}

RESPONSE_STATES = frozenset({MatchState.ACCEPTED, MatchState.DECLINED})


def can_transition(current: MatchState, target: MatchState) -> bool:
    """Return True if ``current -> target`` is a lifecycle edge."""
    return MatchState(target) in TRANSITIONS.get(MatchState(current), frozenset())


def validate_transition(current: MatchState, target: MatchState) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(MatchState(current).value, MatchState(target).value)


def reconcile_suggestion(existing: Optional[Match], fresh: Match) -> Match:
    """Decide which record a regeneration stores for one match id.

    A progressed match (requested, accepted or declined) is kept verbatim and
    the fresh suggestion is discarded. Otherwise the fresh record wins, keeping
    the original ``created_at`` when there was one.

    Args:
        existing: The stored match with the same id, if any
        fresh: The freshly computed suggested match

    Returns:
        The record that must be stored and returned
    """
    if existing is None:
        return fresh
    if existing.is_progressed:
        return existing
    return fresh.evolve(created_at=existing.created_at)


class MatchLifecycle:
    """Applies request/respond transitions against a MatchStore."""

    def __init__(self, store: "MatchStore"):
        self.store = store

    def request(self, match_id: str, now: Optional[datetime] = None) -> Match:
        """Move a suggested match to requested.

        Args:
            match_id: Match identifier
            now: Transition timestamp (defaults to current UTC time)

        Returns:
            The updated match

        Raises:
            NotFoundError: If the match does not exist
            InvalidTransitionError: If the match is not suggested
        """
        return self._transition(match_id, MatchState.SUGGESTED, MatchState.REQUESTED, None, now)

    def respond(
        self,
        match_id: str,
        decision: MatchState,
        connection_payload: Optional[ConnectionPayload] = None,
        now: Optional[datetime] = None,
    ) -> Match:
        """Accept or decline a requested match.

        Accepting stores ``connection_payload`` (an empty payload when none is
        given). Declining stores none.

        Raises:
            InvalidInputError: If decision is not accepted/declined
            NotFoundError: If the match does not exist
            InvalidTransitionError: If the match is not requested
        """
        try:
            target = MatchState(decision)
        except ValueError as e:
            raise InvalidInputError(f"decision must be accepted or declined, got: {decision!r}") from e

        if target not in RESPONSE_STATES:
            raise InvalidInputError(f"decision must be accepted or declined, got: {target.value}")

        payload = None
        if target == MatchState.ACCEPTED:
            payload = connection_payload or ConnectionPayload()

        return self._transition(match_id, MatchState.REQUESTED, target, payload, now)

    def _transition(
        self,
        match_id: str,
        expected: MatchState,
        target: MatchState,
        payload: Optional[ConnectionPayload],
        now: Optional[datetime],
    ) -> Match:
        timestamp = ensure_utc(now) if now is not None else utc_now()

        with log_context(match_id=match_id):
            current = self.store.get_match(match_id)
            if current is None:
                raise NotFoundError("match", match_id)

            if current.state != expected:
                self._reject(current.state, target)

            updated = self.store.compare_and_set(
                match_id,
                expected_state=expected,
                new_state=target,
                updated_at=timestamp,
                connection_payload=payload,
            )

            if updated is None:
                # Lost a race: report the state the winner left behind
                latest = self.store.get_match(match_id)
                if latest is None:
                    raise NotFoundError("match", match_id)
                self._reject(latest.state, target)

            logger.info(
                f"Match {match_id} moved {expected.value} -> {target.value}",
                extra={
                    "event": "lifecycle.transition.applied",
                    "from_state": expected.value,
                    "to_state": target.value,
                    "helper_id": updated.helper_id,
                    "request_id": updated.request_id,
                },
            )
            return updated

    @staticmethod
    def _reject(current: MatchState, target: MatchState) -> None:
        state = MatchState(current).value
        logger.info(
            f"Rejected transition from {state} to {target.value}",
            extra={
                "event": "lifecycle.transition.rejected",
                "from_state": state,
                "to_state": target.value,
            },
        )
        raise InvalidTransitionError(state, target.value)
