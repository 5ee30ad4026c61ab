#!/usr/bin/env python3
"""
Match Engine - ranks eligible contractors for a single job.

Pipeline per job:
1. Load ACTIVE contractors on enabled accounts
2. Drop contractors with no active availability window on the job's weekday
3. Drop contractors whose distance to the job exceeds their own service radius
4. Score survivors on rating, proximity, acceptance and completion
5. Sort by score (desc), contractor id as the deterministic tie-breaker

Read-only: safe to run concurrently for different jobs.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Any

from core.config_loader import MatchingConfig
from core.errors import NotFoundError, ValidationError
from core.matching.availability import is_available
from core.matching.geo import haversine_km, proximity_score
from core.matching.models import RankedCandidate
from core.utils import parse_uuid
from database.models import ContractorProfile, Job
from database.uow import dispatch_uow

logger = logging.getLogger(__name__)


def score_components(
    contractor: ContractorProfile,
    distance_km: float,
    config: MatchingConfig
) -> Dict[str, float]:
    """
    Normalize each score input to [0, 1].

    A contractor with no history is not penalized: missing acceptance and
    completion rates count as 1.0. Rating falls back to mid-scale only when
    it was never set.
    """
    rating = contractor.rating if contractor.rating is not None else config.default_rating
    acceptance = contractor.acceptance_rate if contractor.acceptance_rate is not None else 1.0
    completion = contractor.completion_rate if contractor.completion_rate is not None else 1.0

    return {
        'rating': min(max(rating / 5.0, 0.0), 1.0),
        'distance': proximity_score(distance_km, config.max_distance_km),
        'acceptance': min(max(acceptance, 0.0), 1.0),
        'completion': min(max(completion, 0.0), 1.0),
    }


def calculate_score(
    contractor: ContractorProfile,
    distance_km: float,
    config: MatchingConfig
) -> float:
    components = score_components(contractor, distance_km, config)
    weights = config.weights
    return (
        components['rating'] * weights.rating
        + components['distance'] * weights.distance
        + components['acceptance'] * weights.acceptance
        + components['completion'] * weights.completion
    )


def rank_contractors(
    job: Job,
    contractors: Iterable[ContractorProfile],
    config: MatchingConfig
) -> List[RankedCandidate]:
    """
    Filter and rank already-loaded contractors for a job.

    Raises:
        ValidationError: job has no resolved coordinates
    """
    if job.latitude is None or job.longitude is None:
        raise ValidationError(f"Job {job.id} has no resolvable location")

    ranked = []
    for contractor in contractors:
        if not is_available(contractor.availability, job.scheduled_at):
            continue

        if contractor.latitude is None or contractor.longitude is None:
            logger.debug(f"Contractor {contractor.id} skipped: no coordinates")
            continue

        distance = haversine_km(job.latitude, job.longitude, contractor.latitude, contractor.longitude)

        # Boundary inclusive: distance == radius stays eligible
        if distance > contractor.service_radius_km:
            continue

        components = score_components(contractor, distance, config)
        ranked.append(RankedCandidate(
            contractor_id=contractor.id,
            score=calculate_score(contractor, distance, config),
            distance_km=distance,
            components=components
        ))

    ranked.sort(key=lambda c: (-c.score, str(c.contractor_id)))
    return ranked


class MatchEngine:
    """
    Service producing ranked candidate lists for jobs.

    Opens its own read-only unit of work per call, so one engine can be
    shared across threads.
    """

    def __init__(self, config: MatchingConfig, uow_factory: Callable = dispatch_uow):
        self.config = config
        self.uow_factory = uow_factory

    def rank(self, job_id: Any) -> List[RankedCandidate]:
        """
        Rank eligible contractors for a job.

        Raises:
            NotFoundError: job does not exist
            ValidationError: job has no resolvable location
        """
        job_id = parse_uuid(job_id, "job id")

        with self.uow_factory() as repo:
            job = repo.jobs.get(job_id)
            if job is None:
                raise NotFoundError(f"Job {job_id} not found")

            contractors = repo.contractors.get_matchable()
            ranked = rank_contractors(job, contractors, self.config)

        logger.info(f"Ranked {len(ranked)} eligible contractors for job {job_id}")
        return ranked

    def top_candidates(self, job_id: Any, limit: Optional[int] = None) -> List[RankedCandidate]:
        limit = limit if limit is not None else self.config.candidates_to_offer
        return self.rank(job_id)[:limit]
