"""Ranking a candidate pool into an ordered shortlist."""

import logging
from typing import Callable, Iterable, List, Optional

from helpmatch.domain.models import HelpRequest, User

from .models import RankedCandidate
from .scorer import score_candidate

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5
MIN_TOP_N = 1
MAX_TOP_N = 20


def clamp_top_n(
    value: Optional[object],
    default: int = DEFAULT_TOP_N,
    lower: int = MIN_TOP_N,
    upper: int = MAX_TOP_N,
) -> int:
    """Clamp a caller-supplied shortlist size into [lower, upper].

    ``None`` means "use the default". Non-numeric values raise ``ValueError``;
    the service layer turns that into a validation error before any state is
    touched.

    Example:
        >>> clamp_top_n(50)
        20
        >>> clamp_top_n(None)
        5
    """
    if value is None:
        return max(lower, min(upper, default))
    if isinstance(value, bool):
        raise ValueError(f"top_n must be an integer, got: {value!r}")
    n = int(value)
    return max(lower, min(upper, n))


def rank_candidates(
    request: HelpRequest,
    requester: User,
    candidates: Iterable[User],
    n: int = DEFAULT_TOP_N,
    scorer: Callable = score_candidate,
) -> List[RankedCandidate]:
    """Score, sort and truncate a candidate pool.

    The requester is always excluded. Ordering is by score descending, then
    helper id ascending, so equal scores always come out in the same order.
    Pure: no I/O and identical output for identical input.

    Args:
        request: The help request
        requester: The requesting user (excluded from the pool)
        candidates: Candidate helpers
        n: Maximum shortlist length (callers clamp it beforehand)
        scorer: Scoring function returning a ScoredCandidate

    Returns:
        At most ``n`` RankedCandidate entries, best first
    """
    ranked: List[RankedCandidate] = []
    seen_ids = set()

    for helper in candidates:
        if helper.id == requester.id or helper.id in seen_ids:
            continue
        seen_ids.add(helper.id)

        scored = scorer(request, requester, helper)
        ranked.append(RankedCandidate(helper=helper, score=scored.score, reasons=list(scored.reasons)))

    ranked.sort(key=lambda entry: (-entry.score, entry.helper.id))
    shortlist = ranked[: max(n, 0)]

    logger.debug(
        f"Ranked {len(ranked)} candidates for request {request.id}",
        extra={
            "event": "matching.rank.completed",
            "request_id": request.id,
            "candidate_count": len(ranked),
            "shortlist_count": len(shortlist),
        },
    )

    return shortlist
