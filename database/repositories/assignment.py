import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select, update

from database.models import Assignment, AssignmentStatus
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AssignmentRepository(BaseRepository):
    def get(self, assignment_id: Any, refresh: bool = False) -> Optional[Assignment]:
        return self.db.get(Assignment, assignment_id, populate_existing=refresh)

    def create(
        self,
        job_id: Any,
        contractor_id: Any,
        status: AssignmentStatus,
        expires_at: datetime,
        responded_at: Optional[datetime] = None
    ) -> Assignment:
        assignment = Assignment(
            job_id=job_id,
            contractor_id=contractor_id,
            status=status,
            expires_at=expires_at,
            responded_at=responded_at
        )
        self.db.add(assignment)
        self.db.flush()
        return assignment

    def get_pending_offer(self, job_id: Any, contractor_id: Any) -> Optional[Assignment]:
        stmt = (
            select(Assignment)
            .where(
                Assignment.job_id == job_id,
                Assignment.contractor_id == contractor_id,
                Assignment.status == AssignmentStatus.PENDING
            )
            .order_by(Assignment.expires_at.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def has_expired_offer(self, job_id: Any, contractor_id: Any) -> bool:
        stmt = (
            select(Assignment.id)
            .where(
                Assignment.job_id == job_id,
                Assignment.contractor_id == contractor_id,
                Assignment.status == AssignmentStatus.EXPIRED
            )
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def get_accepted_for_job(self, job_id: Any) -> Optional[Assignment]:
        stmt = select(Assignment).where(
            Assignment.job_id == job_id,
            Assignment.status == AssignmentStatus.ACCEPTED
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_job(self, job_id: Any) -> List[Assignment]:
        stmt = select(Assignment).where(Assignment.job_id == job_id).order_by(Assignment.created_at)
        return self.db.execute(stmt).scalars().all()

    def transition(
        self,
        assignment_id: Any,
        to_status: AssignmentStatus,
        responded_at: Optional[datetime] = None
    ) -> int:
        """PENDING -> terminal state; 0 rows if the offer already left PENDING."""
        self.db.flush()
        values = {'status': to_status}
        if responded_at is not None:
            values['responded_at'] = responded_at
        stmt = (
            update(Assignment)
            .where(Assignment.id == assignment_id, Assignment.status == AssignmentStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def expire_stale(self, now: datetime) -> int:
        self.db.flush()
        stmt = (
            update(Assignment)
            .where(Assignment.status == AssignmentStatus.PENDING, Assignment.expires_at <= now)
            .values(status=AssignmentStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        count = self.db.execute(stmt).rowcount
        if count > 0:
            logger.info(f"Expired {count} stale offers")
        return count
