"""Match identity and initial match records."""

from datetime import datetime
from typing import List, Optional

from helpmatch.domain.models import MATCH_ID_SEPARATOR, HelpRequest, Match, MatchState
from helpmatch.utils.timestamps import ensure_utc, utc_now

from .exceptions import InvalidInputError
from .models import RankedCandidate


def make_match_id(request_id: str, helper_id: str) -> str:
    """Derive the match id for a (request, helper) pair.

    A pure function of its inputs, so there can be at most one match per pair
    and regenerating matches is idempotent without any lookup. Neither id may
    contain the separator, otherwise two pairs could share one id.

    Raises:
        InvalidInputError: If either id contains the separator

    Example:
        >>> make_match_id("r1", "u2")
        'r1__u2'
    """
    for value in (request_id, helper_id):
        if MATCH_ID_SEPARATOR in value:
            raise InvalidInputError(f"id cannot contain '{MATCH_ID_SEPARATOR}': {value}")
    return f"{request_id}{MATCH_ID_SEPARATOR}{helper_id}"


def make_match(
    request_id: str,
    requester_id: str,
    helper_id: str,
    score: float,
    reasons: List[str],
    now: Optional[datetime] = None,
    state: MatchState = MatchState.SUGGESTED,
    match_id: Optional[str] = None,
) -> Match:
    """Build a match record with ``created_at == updated_at == now``.

    Args:
        request_id: Help request id
        requester_id: Requesting user id
        helper_id: Candidate helper id
        score: Fit score
        reasons: Human-readable reasons
        now: Timestamp to stamp (defaults to the current UTC time)
        state: Initial state (suggested for generation)
        match_id: Explicit id; derived from the pair when omitted

    Returns:
        New Match
    """
    timestamp = ensure_utc(now) if now is not None else utc_now()
    return Match(
        id=match_id or make_match_id(request_id, helper_id),
        request_id=request_id,
        requester_id=requester_id,
        helper_id=helper_id,
        score=score,
        reasons=list(reasons),
        state=state,
        created_at=timestamp,
        updated_at=timestamp,
    )


def match_from_ranked(request: HelpRequest, ranked: RankedCandidate, now: Optional[datetime] = None) -> Match:
    """Build the fresh suggested match for one ranked entry."""
    return make_match(
        request_id=request.id,
        requester_id=request.requester_id,
        helper_id=ranked.helper.id,
        score=ranked.score,
        reasons=ranked.reasons,
        now=now,
    )
