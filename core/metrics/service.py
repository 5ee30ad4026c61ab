#!/usr/bin/env python3
"""
Metrics Recalculator - contractor performance rates.

Everything is recomputed from the persisted counters and reviews, so the
operation is idempotent and can run any number of times in any order.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.errors import NotFoundError
from core.utils import parse_uuid
from database.uow import dispatch_uow

logger = logging.getLogger(__name__)

DEFAULT_QUALITY_SCORE = 5.0


@dataclass(frozen=True)
class ContractorMetrics:
    contractor_id: uuid.UUID
    acceptance_rate: float
    completion_rate: float
    quality_score: float
    rating: float
    total_ratings: int
    offered_count: int
    accepted_count: int
    completed_count: int


def acceptance_rate(accepted: int, offered: int) -> float:
    """Accepted / offered; a contractor never offered anything scores 1.0."""
    if offered <= 0:
        return 1.0
    return min(1.0, accepted / offered)


def completion_rate(completed: int, accepted: int) -> float:
    """Completed / accepted; 1.0 before the first accepted job."""
    if accepted <= 0:
        return 1.0
    return min(1.0, completed / accepted)


def quality_score(average_rating: Optional[float]) -> float:
    return average_rating if average_rating is not None else DEFAULT_QUALITY_SCORE


class MetricsRecalculator:
    def __init__(self, uow_factory: Callable = dispatch_uow):
        self.uow_factory = uow_factory

    def recompute(self, contractor_id: Any) -> ContractorMetrics:
        """
        Recompute and persist acceptance, completion and quality for a contractor.

        Raises:
            NotFoundError: contractor does not exist
        """
        contractor_id = parse_uuid(contractor_id, "contractor id")

        with self.uow_factory() as repo:
            # Counters are bumped with SQL increments; re-read, don't trust the identity map
            contractor = repo.contractors.get(contractor_id, refresh=True)
            if contractor is None:
                raise NotFoundError(f"Contractor {contractor_id} not found")

            review_count, average = repo.reviews.get_rating_stats(contractor_id)
            quality = quality_score(average)

            repo.contractors.save_metrics(
                contractor,
                acceptance_rate=acceptance_rate(contractor.accepted_count, contractor.offered_count),
                completion_rate=completion_rate(contractor.completed_count, contractor.accepted_count),
                quality_score=quality,
                total_ratings=review_count
            )

            metrics = ContractorMetrics(
                contractor_id=contractor.id,
                acceptance_rate=contractor.acceptance_rate,
                completion_rate=contractor.completion_rate,
                quality_score=contractor.quality_score,
                rating=contractor.rating,
                total_ratings=contractor.total_ratings,
                offered_count=contractor.offered_count,
                accepted_count=contractor.accepted_count,
                completed_count=contractor.completed_count,
            )

        logger.debug(
            f"Recomputed metrics for contractor {contractor_id}: "
            f"acceptance={metrics.acceptance_rate:.2f} completion={metrics.completion_rate:.2f} "
            f"quality={metrics.quality_score:.2f}"
        )
        return metrics
