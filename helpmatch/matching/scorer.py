"""Candidate scoring: weighted tag/format/urgency fit with explanations.

The scorer is a pure function of (request, requester, helper). It has no
randomness and no I/O, so re-scoring the same triple always yields the same
score and reasons.
"""

import logging
from typing import List, Set, Tuple

from helpmatch.domain.models import MAX_REASONS, HelpRequest, RequestFormat, Urgency, User
from helpmatch.tags.normalizer import expand_tag_list, expand_tags, normalize_tag_list

from .models import ScoreBreakdown, ScoredCandidate

logger = logging.getLogger(__name__)

TAG_WEIGHT = 0.70
FORMAT_WEIGHT = 0.20
URGENCY_WEIGHT = 0.10

NEUTRAL_FORMAT_SCORE = 0.5

URGENCY_SCORES = {
    Urgency.HIGH: 1.0,
    Urgency.MEDIUM: 0.6,
    Urgency.LOW: 0.3,
}

MAX_SHARED_TAGS = 4
MAX_RELATED_TAGS = 2

GENERIC_REASON = "Profile appears generally relevant"


def jaccard(a: Set[str], b: Set[str]) -> float:
    """|a ∩ b| / |a ∪ b|, or 0.0 when both sets are empty."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def format_score(request_format: RequestFormat, helper: User) -> float:
    """Fit between the requested format and the helper.

    Helpers do not declare format preferences yet, so every helper gets the
    neutral 0.5. Replace this once helper-side preferences exist.
    """
    return NEUTRAL_FORMAT_SCORE


def urgency_score(urgency: Urgency) -> float:
    """Fixed mapping: high 1.0, medium 0.6, low 0.3."""
    return URGENCY_SCORES.get(Urgency(urgency), URGENCY_SCORES[Urgency.LOW])


def compute_breakdown(request: HelpRequest, requester: User, helper: User) -> ScoreBreakdown:
    """Compute the weighted score and its components.

    Args:
        request: The help request
        requester: The user who made the request (unused by the current weights)
        helper: The candidate helper

    Returns:
        ScoreBreakdown with the final score clamped to [0, 1] and rounded to 4 places
    """
    tag_similarity = jaccard(expand_tags(request.tags), expand_tags(helper.tags))
    fmt = format_score(request.format, helper)
    urg = urgency_score(request.urgency)

    raw = tag_similarity * TAG_WEIGHT + fmt * FORMAT_WEIGHT + urg * URGENCY_WEIGHT
    score = max(0.0, min(1.0, round(raw, 4)))

    return ScoreBreakdown(
        tag_similarity=tag_similarity,
        format_score=fmt,
        urgency_score=urg,
        score=score,
    )


def build_reasons(request: HelpRequest, helper: User) -> List[str]:
    """Build the ordered, human-readable reasons for a pairing.

    Priority:
    1. "Shared tags: ..." for literal request tags the helper also lists (request order, up to 4)
    2. otherwise "Related tags: ..." for up to 2 tags shared only through expansion,
       in the request's expanded order
    3. "Request format: {format}"
    4. "Urgent request" (high) or "Time-sensitive request" (medium)

    Falls back to a generic reason if nothing applies. Never more than four entries.
    """
    request_original = normalize_tag_list(request.tags)
    helper_original = set(normalize_tag_list(helper.tags))

    shared_original = [tag for tag in request_original if tag in helper_original][:MAX_SHARED_TAGS]

    reasons: List[str] = []

    if shared_original:
        reasons.append(f"Shared tags: {', '.join(shared_original)}")
    else:
        helper_expanded = expand_tags(helper.tags)
        related = [tag for tag in expand_tag_list(request.tags) if tag in helper_expanded][:MAX_RELATED_TAGS]
        if related:
            reasons.append(f"Related tags: {', '.join(related)}")

    request_format = RequestFormat(request.format)
    reasons.append(f"Request format: {request_format.value}")

    urgency = Urgency(request.urgency)
    if urgency == Urgency.HIGH:
        reasons.append("Urgent request")
    elif urgency == Urgency.MEDIUM:
        reasons.append("Time-sensitive request")

    if not reasons:
        reasons.append(GENERIC_REASON)

    return reasons[:MAX_REASONS]


def score_candidate(request: HelpRequest, requester: User, helper: User) -> ScoredCandidate:
    """Score one helper against a request.

    Args:
        request: The help request
        requester: The requesting user
        helper: The candidate helper

    Returns:
        ScoredCandidate with score, reasons and breakdown
    """
    breakdown = compute_breakdown(request, requester, helper)
    reasons = build_reasons(request, helper)

    logger.debug(
        f"Scored helper {helper.id} for request {request.id}",
        extra={
            "event": "matching.candidate.scored",
            "request_id": request.id,
            "helper_id": helper.id,
            "score": breakdown.score,
            "tag_similarity": round(breakdown.tag_similarity, 4),
        },
    )

    return ScoredCandidate(score=breakdown.score, reasons=reasons, breakdown=breakdown)


class CandidateScorer:
    """Callable scorer object, injectable into the ranker.

    Example:
        >>> score, reasons = CandidateScorer().score(request, requester, helper)
    """

    def score(self, request: HelpRequest, requester: User, helper: User) -> Tuple[float, List[str]]:
        return score_candidate(request, requester, helper).as_tuple()
