"""Data models for scoring and ranking results."""

from dataclasses import dataclass, field
from typing import List, Tuple

from helpmatch.domain.models import User


@dataclass(frozen=True)
class ScoreBreakdown:
    """The weighted components behind one score.

    Attributes:
        tag_similarity: Jaccard similarity of the expanded tag sets
        format_score: Format fit (neutral placeholder)
        urgency_score: Urgency weight of the request
        score: Final weighted, clamped and rounded score
    """

    tag_similarity: float
    format_score: float
    urgency_score: float
    score: float


@dataclass
class ScoredCandidate:
    """Score and human-readable reasons for one (request, helper) pair."""

    score: float
    reasons: List[str] = field(default_factory=list)
    breakdown: ScoreBreakdown = None

    def as_tuple(self) -> Tuple[float, List[str]]:
        return self.score, list(self.reasons)


@dataclass
class RankedCandidate:
    """One entry of a ranked shortlist.

    Attributes:
        helper: The candidate helper
        score: Fit score in [0, 1], 4 decimal places
        reasons: Up to four human-readable reasons, most specific first
    """

    helper: User
    score: float
    reasons: List[str] = field(default_factory=list)

    @property
    def helper_id(self) -> str:
        return self.helper.id
