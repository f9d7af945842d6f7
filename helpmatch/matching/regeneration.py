"""Regenerating a request's matches without regressing progressed ones.

Each run ranks the candidate pool afresh and builds a suggested record per
ranked helper. Every record is then reconciled with what is stored through
``MatchStore.save_suggestion``:

- a stored match that is requested, accepted or declined is kept verbatim
- otherwise the fresh suggestion is upserted, keeping the original created_at

Reconciliations are independent per match id and may run in parallel. The
returned list follows the fresh rank order, not storage order. Progressed
matches whose helper fell out of the fresh shortlist are appended after it so
in-flight and accepted connections never disappear from the requester's view.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from helpmatch.domain.models import HelpRequest, Match, User
from helpmatch.logging import get_logger
from helpmatch.utils.timestamps import ensure_utc, utc_now

from .factory import match_from_ranked
from .ranker import DEFAULT_TOP_N, rank_candidates
from .store import MatchStore

logger = get_logger(__name__, component="matching")


def merge_in_rank_order(ranked_ids: List[str], resolved: Dict[str, Match]) -> List[Match]:
    """Map the fresh rank order through the id -> resolved record lookup."""
    return [resolved[match_id] for match_id in ranked_ids if match_id in resolved]


class MatchRegenerator:
    """Runs ranking and reconciles the result against stored matches."""

    def __init__(self, store: MatchStore, max_workers: int = 1):
        """Initialize regenerator.

        Args:
            store: Storage port holding matches
            max_workers: Thread pool size for per-match reconciliation (1 = sequential)
        """
        self.store = store
        self.max_workers = max(1, max_workers)

    def regenerate(
        self,
        request: HelpRequest,
        requester: User,
        candidates: Iterable[User],
        n: int = DEFAULT_TOP_N,
        now: Optional[datetime] = None,
    ) -> List[Match]:
        """Recompute and persist the shortlist for one request.

        Safe to call repeatedly and concurrently for the same request: ids are
        deterministic and each reconciliation is atomic in the store.

        Args:
            request: The help request
            requester: The requesting user
            candidates: Candidate helpers (the requester is excluded by ranking)
            n: Shortlist length, already clamped by the caller
            now: Timestamp for fresh records (defaults to current UTC time)

        Returns:
            Reconciled matches, best fresh rank first, then progressed matches
            outside the shortlist
        """
        timestamp = ensure_utc(now) if now is not None else utc_now()

        ranked = rank_candidates(request, requester, candidates, n)
        fresh = [match_from_ranked(request, entry, timestamp) for entry in ranked]
        ranked_ids = [match.id for match in fresh]

        saved = self._save_all(fresh)
        resolved = {match.id: match for match in saved}

        ordered = merge_in_rank_order(ranked_ids, resolved)

        shortlisted = set(ranked_ids)
        carried = [m for m in self.store.find_active_by_request(request.id) if m.id not in shortlisted]
        ordered.extend(carried)

        preserved_count = sum(1 for match in ordered if match.is_progressed)
        logger.info(
            f"Generated {len(fresh)} suggestions for request {request.id}",
            extra={
                "event": "matching.generate.completed",
                "request_id": request.id,
                "top_n": n,
                "suggested_count": len(fresh),
                "preserved_count": preserved_count,
                "carried_count": len(carried),
            },
        )
        return ordered

    def _save_all(self, fresh: List[Match]) -> List[Match]:
        if self.max_workers == 1 or len(fresh) <= 1:
            return [self.store.save_suggestion(match) for match in fresh]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(fresh))) as executor:
            return list(executor.map(self.store.save_suggestion, fresh))
