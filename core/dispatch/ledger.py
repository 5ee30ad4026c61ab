#!/usr/bin/env python3
"""
Assignment Ledger - offers and claim arbitration.

The ledger is the only writer of acceptance-related job status changes.
Exclusivity of a claim rests on a single conditional UPDATE of the job's
status (compare-and-set); the ACCEPTED assignment is written only after
that update affected a row, inside the same transaction.

Offer expiry is lazy: PENDING offers past their expiry are rejected at
claim time, and a contractor whose offer expired cannot claim the job from
the open board either. ``expire_stale_offers`` can be scheduled as a reaper but is
not required for correctness.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError

from core.config_loader import DispatchConfig
from core.dispatch.models import AssignmentRecord
from core.errors import ConflictError, NotFoundError
from core.utils import ensure_utc, parse_uuid, utcnow
from database.models import AssignmentStatus, JobStatus, CLAIMABLE_JOB_STATUSES
from database.uow import dispatch_uow

logger = logging.getLogger(__name__)


class AssignmentLedger:
    """
    Owns the offer/claim protocol and per-job assignment records.

    Args:
        config: DispatchConfig (offer TTL, metrics refresh)
        uow_factory: Callable returning a unit-of-work context manager
        notifier: Optional OfferNotifier for "job offered" events
        metrics: Optional MetricsRecalculator refreshed after claims/completions
    """

    def __init__(
        self,
        config: DispatchConfig,
        uow_factory: Callable = dispatch_uow,
        notifier=None,
        metrics=None
    ):
        self.config = config
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.metrics = metrics

    @property
    def offer_ttl(self) -> timedelta:
        return timedelta(minutes=self.config.offer_ttl_minutes)

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    def offer(self, job_id: Any, contractor_ids: Iterable[Any]) -> List[Any]:
        """
        Create one PENDING offer per candidate and move the job to OFFERED.

        Returns:
            Assignment ids, in candidate order

        Raises:
            NotFoundError: job or a contractor does not exist
            ConflictError: job is no longer claimable
        """
        job_id = parse_uuid(job_id, "job id")
        candidates = []
        for raw_id in contractor_ids:
            contractor_id = parse_uuid(raw_id, "contractor id")
            if contractor_id not in candidates:
                candidates.append(contractor_id)

        now = utcnow()
        expires_at = now + self.offer_ttl
        created: List[AssignmentRecord] = []

        with self.uow_factory() as repo:
            job = repo.jobs.get(job_id)
            if job is None:
                raise NotFoundError(f"Job {job_id} not found")
            if job.status not in CLAIMABLE_JOB_STATUSES:
                raise ConflictError(f"Job {job_id} is {job.status.value}, cannot be offered")

            for contractor_id in candidates:
                if repo.contractors.get(contractor_id) is None:
                    raise NotFoundError(f"Contractor {contractor_id} not found")

                assignment = repo.assignments.create(
                    job_id=job_id,
                    contractor_id=contractor_id,
                    status=AssignmentStatus.PENDING,
                    expires_at=expires_at
                )
                repo.contractors.increment_counter(contractor_id, 'offered_count')
                created.append(AssignmentRecord.from_orm(assignment))

            if created:
                repo.jobs.transition_status(job_id, [JobStatus.CREATED], JobStatus.OFFERED)

        logger.info(f"Created {len(created)} offers for job {job_id} (expire {expires_at.isoformat()})")

        for record in created:
            self._notify_offered(record)

        return [record.id for record in created]

    def _notify_offered(self, record: AssignmentRecord) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify_job_offered(
                job_id=record.job_id,
                contractor_id=record.contractor_id,
                assignment_id=record.id,
                expires_at=record.expires_at
            )
        except Exception as e:
            # Fire-and-forget: the offer stands even if the notification is lost
            logger.error(f"Failed to dispatch offer notification for assignment {record.id}: {e}")

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def claim(self, job_id: Any, contractor_id: Any) -> AssignmentRecord:
        """
        Atomically accept a job for a contractor.

        Exactly one concurrent caller can succeed for a given job; every
        other caller gets ConflictError.

        Raises:
            NotFoundError: job or contractor does not exist
            ConflictError: job already claimed/not claimable, or the offer expired
        """
        job_id = parse_uuid(job_id, "job id")
        contractor_id = parse_uuid(contractor_id, "contractor id")
        now = utcnow()
        expired_offer_id = None
        record = None

        try:
            with self.uow_factory() as repo:
                if repo.jobs.get(job_id) is None:
                    raise NotFoundError(f"Job {job_id} not found")
                if repo.contractors.get(contractor_id) is None:
                    raise NotFoundError(f"Contractor {contractor_id} not found")

                offer = repo.assignments.get_pending_offer(job_id, contractor_id)

                if offer is not None and ensure_utc(offer.expires_at) <= now:
                    # Persist the expiry, then reject outside the transaction
                    repo.assignments.transition(offer.id, AssignmentStatus.EXPIRED)
                    expired_offer_id = offer.id
                else:
                    # A lapsed offer stays lapsed, whether expired here or by the reaper
                    if offer is None and repo.assignments.has_expired_offer(job_id, contractor_id):
                        raise ConflictError("offer expired")

                    updated = repo.jobs.transition_status(job_id, CLAIMABLE_JOB_STATUSES, JobStatus.CLAIMED)
                    if updated == 0:
                        raise ConflictError("job no longer available")

                    if offer is not None:
                        if repo.assignments.transition(offer.id, AssignmentStatus.ACCEPTED, responded_at=now) == 0:
                            raise ConflictError("offer no longer pending")
                        accepted = repo.assignments.get(offer.id, refresh=True)
                    else:
                        # Claimed straight from the open job board, no prior offer
                        accepted = repo.assignments.create(
                            job_id=job_id,
                            contractor_id=contractor_id,
                            status=AssignmentStatus.ACCEPTED,
                            expires_at=now + self.offer_ttl,
                            responded_at=now
                        )

                    repo.contractors.increment_counter(contractor_id, 'accepted_count')
                    record = AssignmentRecord.from_orm(accepted)
        except IntegrityError as e:
            # Partial unique index on ACCEPTED rows: a second acceptance slipped through
            logger.warning(f"Claim on job {job_id} by {contractor_id} hit accepted-assignment constraint: {e}")
            raise ConflictError("job no longer available") from e

        if expired_offer_id is not None:
            logger.info(f"Claim on job {job_id} by {contractor_id} rejected: offer {expired_offer_id} expired")
            raise ConflictError("offer expired")

        logger.info(f"Job {job_id} claimed by contractor {contractor_id}")
        self._refresh_metrics(contractor_id)
        return record

    def decline(self, job_id: Any, contractor_id: Any) -> AssignmentRecord:
        """
        Explicitly decline a pending offer (PENDING -> REJECTED).

        An offer already past its expiry is recorded as EXPIRED instead.

        Raises:
            NotFoundError: no pending offer for this job and contractor
            ConflictError: the offer left PENDING concurrently
        """
        job_id = parse_uuid(job_id, "job id")
        contractor_id = parse_uuid(contractor_id, "contractor id")
        now = utcnow()

        with self.uow_factory() as repo:
            offer = repo.assignments.get_pending_offer(job_id, contractor_id)
            if offer is None:
                raise NotFoundError(f"No pending offer for job {job_id} and contractor {contractor_id}")

            if ensure_utc(offer.expires_at) <= now:
                target = AssignmentStatus.EXPIRED
            else:
                target = AssignmentStatus.REJECTED

            if repo.assignments.transition(offer.id, target, responded_at=now) == 0:
                raise ConflictError("offer no longer pending")

            record = AssignmentRecord.from_orm(repo.assignments.get(offer.id, refresh=True))

        logger.info(f"Offer {record.id} for job {job_id} -> {record.status.value}")
        return record

    # ------------------------------------------------------------------
    # Job progress after the claim
    # ------------------------------------------------------------------

    def start(self, job_id: Any, contractor_id: Any) -> None:
        """CLAIMED -> IN_PROGRESS, only by the accepted contractor."""
        job_id = parse_uuid(job_id, "job id")
        contractor_id = parse_uuid(contractor_id, "contractor id")

        with self.uow_factory() as repo:
            self._require_accepted(repo, job_id, contractor_id)
            if repo.jobs.transition_status(job_id, [JobStatus.CLAIMED], JobStatus.IN_PROGRESS) == 0:
                raise ConflictError(f"Job {job_id} cannot be started from its current state")

        logger.info(f"Job {job_id} started by contractor {contractor_id}")

    def complete(self, job_id: Any, contractor_id: Any) -> None:
        """
        CLAIMED/IN_PROGRESS -> COMPLETED and bump the contractor's completed counter.

        Raises:
            NotFoundError: job does not exist or was never accepted
            ConflictError: caller is not the accepted contractor, or job not in progress
        """
        job_id = parse_uuid(job_id, "job id")
        contractor_id = parse_uuid(contractor_id, "contractor id")

        with self.uow_factory() as repo:
            self._require_accepted(repo, job_id, contractor_id)
            updated = repo.jobs.transition_status(
                job_id, [JobStatus.CLAIMED, JobStatus.IN_PROGRESS], JobStatus.COMPLETED
            )
            if updated == 0:
                raise ConflictError(f"Job {job_id} cannot be completed from its current state")
            repo.contractors.increment_counter(contractor_id, 'completed_count')

        logger.info(f"Job {job_id} completed by contractor {contractor_id}")
        self._refresh_metrics(contractor_id)

    def expire_stale_offers(self, now: Optional[datetime] = None) -> int:
        """Flip PENDING offers past their expiry to EXPIRED."""
        with self.uow_factory() as repo:
            return repo.assignments.expire_stale(now or utcnow())

    @staticmethod
    def _require_accepted(repo, job_id, contractor_id) -> None:
        if repo.jobs.get(job_id) is None:
            raise NotFoundError(f"Job {job_id} not found")
        accepted = repo.assignments.get_accepted_for_job(job_id)
        if accepted is None:
            raise NotFoundError(f"Job {job_id} has no accepted contractor")
        if accepted.contractor_id != contractor_id:
            raise ConflictError(f"Job {job_id} is assigned to another contractor")

    def _refresh_metrics(self, contractor_id) -> None:
        if self.metrics is None or not self.config.recompute_metrics_on_claim:
            return
        try:
            self.metrics.recompute(contractor_id)
        except Exception as e:
            # The state change is already committed; stale rates are fixed on the next recompute
            logger.error(f"Metrics refresh failed for contractor {contractor_id}: {e}")
