import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import select, update, and_, func

from database.models import (
    Job, Assignment, ContractorProfile,
    JobStatus, PayoutStatus, AssignmentStatus,
)
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class JobRepository(BaseRepository):
    def get(self, job_id: Any, refresh: bool = False) -> Optional[Job]:
        return self.db.get(Job, job_id, populate_existing=refresh)

    def transition_status(
        self,
        job_id: Any,
        from_statuses: Iterable[JobStatus],
        to_status: JobStatus
    ) -> int:
        """Compare-and-set on job status.

        Single conditional UPDATE; returns the number of rows changed, which
        is 0 when the job was no longer in one of ``from_statuses``.
        """
        self.db.flush()
        stmt = (
            update(Job)
            .where(Job.id == job_id, Job.status.in_(list(from_statuses)))
            .values(status=to_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def get_settlement_candidates(
        self,
        period_end: datetime
    ) -> List[Tuple[Job, Optional[ContractorProfile]]]:
        """
        Completed, unsettled jobs scheduled before period_end, each paired
        with the contractor holding its ACCEPTED assignment (None if no
        contractor accepted it).
        """
        stmt = (
            select(Job, ContractorProfile)
            .outerjoin(
                Assignment,
                and_(
                    Assignment.job_id == Job.id,
                    Assignment.status == AssignmentStatus.ACCEPTED
                )
            )
            .outerjoin(ContractorProfile, ContractorProfile.id == Assignment.contractor_id)
            .where(
                Job.status == JobStatus.COMPLETED,
                Job.payout_status == PayoutStatus.UNSETTLED,
                Job.scheduled_at < period_end
            )
            .order_by(Job.scheduled_at, Job.id)
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def mark_settled(self, job_ids: List[Any], payout_id: Any) -> int:
        """Link jobs to a payout; only rows still UNSETTLED are touched."""
        if not job_ids:
            return 0

        self.db.flush()
        stmt = (
            update(Job)
            .where(Job.id.in_(job_ids), Job.payout_status == PayoutStatus.UNSETTLED)
            .values(payout_status=PayoutStatus.SETTLED, payout_id=payout_id, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        count = self.db.execute(stmt).rowcount
        logger.debug(f"Marked {count} jobs settled under payout {payout_id}")
        return count

    def get_completed_for_contractor(self, contractor_id: Any) -> List[Job]:
        stmt = (
            select(Job)
            .join(
                Assignment,
                and_(
                    Assignment.job_id == Job.id,
                    Assignment.status == AssignmentStatus.ACCEPTED
                )
            )
            .where(
                Assignment.contractor_id == contractor_id,
                Job.status == JobStatus.COMPLETED
            )
            .order_by(Job.scheduled_at.desc())
        )
        return self.db.execute(stmt).scalars().all()
