import logging
from typing import Any, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload

from database.models import ContractorProfile, ContractorStatus
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

COUNTER_COLUMNS = ('offered_count', 'accepted_count', 'completed_count')


class ContractorRepository(BaseRepository):
    def get(self, contractor_id: Any, refresh: bool = False) -> Optional[ContractorProfile]:
        return self.db.get(ContractorProfile, contractor_id, populate_existing=refresh)

    def get_matchable(self) -> List[ContractorProfile]:
        """ACTIVE contractors on an enabled account, availability preloaded."""
        stmt = (
            select(ContractorProfile)
            .options(selectinload(ContractorProfile.availability))
            .where(
                ContractorProfile.status == ContractorStatus.ACTIVE,
                ContractorProfile.account_active.is_(True)
            )
        )
        return self.db.execute(stmt).scalars().all()

    def increment_counter(self, contractor_id: Any, counter: str) -> int:
        """Atomic ``counter = counter + 1`` in SQL, never read-modify-write."""
        if counter not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown contractor counter: {counter}")

        column = getattr(ContractorProfile, counter)
        self.db.flush()
        stmt = (
            update(ContractorProfile)
            .where(ContractorProfile.id == contractor_id)
            .values({counter: column + 1, 'updated_at': func.now()})
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def save_metrics(
        self,
        contractor: ContractorProfile,
        acceptance_rate: float,
        completion_rate: float,
        quality_score: float,
        total_ratings: int
    ) -> ContractorProfile:
        contractor.acceptance_rate = acceptance_rate
        contractor.completion_rate = completion_rate
        contractor.quality_score = quality_score
        contractor.rating = quality_score
        contractor.total_ratings = total_ratings
        self.db.flush()
        return contractor
