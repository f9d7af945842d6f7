"""Matching engine: scoring, ranking, match records and their lifecycle.

This module provides:
- score_candidate / CandidateScorer: weighted fit score plus reasons for one pair
- rank_candidates: ordered, truncated shortlist for a request
- make_match_id / make_match: deterministic match identity and records
- MatchLifecycle: suggested -> requested -> accepted|declined transitions
- MatchRegenerator: re-ranking that never regresses progressed matches
- MatchStore / InMemoryMatchStore: the storage port and its test implementation
- MatchingService: facade used by the CLI and any request layer
"""

from .commands import GenerateMatchesCommand, PostMessageCommand, RespondCommand, parse_command
from .exceptions import InvalidInputError, InvalidTransitionError, MatchingError, NotFoundError
from .factory import make_match, make_match_id, match_from_ranked
from .lifecycle import TRANSITIONS, MatchLifecycle, can_transition, reconcile_suggestion, validate_transition
from .models import RankedCandidate, ScoreBreakdown, ScoredCandidate
from .ranker import clamp_top_n, rank_candidates
from .regeneration import MatchRegenerator, merge_in_rank_order
from .scorer import CandidateScorer, build_reasons, jaccard, score_candidate
from .service import MatchingService
from .store import InMemoryMatchStore, MatchStore

__all__ = [
    "score_candidate",
    "build_reasons",
    "jaccard",
    "CandidateScorer",
    "rank_candidates",
    "clamp_top_n",
    "make_match_id",
    "make_match",
    "match_from_ranked",
    "MatchLifecycle",
    "TRANSITIONS",
    "can_transition",
    "validate_transition",
    "reconcile_suggestion",
    "MatchRegenerator",
    "merge_in_rank_order",
    "MatchStore",
    "InMemoryMatchStore",
    "MatchingService",
    "RankedCandidate",
    "ScoredCandidate",
    "ScoreBreakdown",
    "GenerateMatchesCommand",
    "RespondCommand",
    "PostMessageCommand",
    "parse_command",
    "MatchingError",
    "InvalidInputError",
    "NotFoundError",
    "InvalidTransitionError",
]
