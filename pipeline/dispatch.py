"""Job-creation dispatch flow.

Runs when a job is created: rank eligible contractors, take the top N and
offer the job to them. Matching problems (no resolvable location, no
eligible contractor, job already taken) never fail job creation; they turn
into a manual-review outcome instead. A job id that does not exist still
raises NotFoundError.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from core.dispatch import AssignmentLedger
from core.errors import ConflictError, ValidationError
from core.matching import MatchEngine

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of dispatching one job."""
    job_id: Any
    offered_to: List[Any] = field(default_factory=list)
    assignment_ids: List[Any] = field(default_factory=list)
    needs_manual_review: bool = False
    error: Optional[str] = None


class DispatchFlow:
    def __init__(self, engine: MatchEngine, ledger: AssignmentLedger, candidates_to_offer: Optional[int] = None):
        self.engine = engine
        self.ledger = ledger
        self.candidates_to_offer = candidates_to_offer

    def on_job_created(self, job_id: Any) -> DispatchResult:
        result = DispatchResult(job_id=job_id)

        try:
            candidates = self.engine.top_candidates(job_id, limit=self.candidates_to_offer)
        except ValidationError as e:
            logger.error(f"Matching failed for job {job_id}: {e}. Flagging for manual review.")
            result.needs_manual_review = True
            result.error = str(e)
            return result

        if not candidates:
            logger.warning(f"No eligible contractors for job {job_id}. Flagging for manual review.")
            result.needs_manual_review = True
            return result

        contractor_ids = [c.contractor_id for c in candidates]
        try:
            result.assignment_ids = self.ledger.offer(job_id, contractor_ids)
        except ConflictError as e:
            logger.error(f"Offering job {job_id} failed: {e}. Flagging for manual review.")
            result.needs_manual_review = True
            result.error = str(e)
            return result

        result.offered_to = contractor_ids
        logger.info(f"Job {job_id} offered to {len(contractor_ids)} contractors")
        return result
