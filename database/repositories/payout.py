import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import select

from database.models import Payout, PayoutRecordStatus
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class PayoutRepository(BaseRepository):
    def create(
        self,
        contractor_id: Any,
        amount: Decimal,
        currency: str,
        transfer_id: str,
        idempotency_key: str,
        period_start: datetime,
        period_end: datetime,
        job_count: int
    ) -> Payout:
        payout = Payout(
            contractor_id=contractor_id,
            amount=amount,
            currency=currency,
            status=PayoutRecordStatus.PAID,
            transfer_id=transfer_id,
            idempotency_key=idempotency_key,
            period_start=period_start,
            period_end=period_end,
            job_count=job_count
        )
        self.db.add(payout)
        self.db.flush()
        return payout

    def get_for_contractor(self, contractor_id: Any, limit: int = 10) -> List[Payout]:
        stmt = (
            select(Payout)
            .where(Payout.contractor_id == contractor_id)
            .order_by(Payout.created_at.desc())
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Payout]:
        stmt = select(Payout).where(Payout.idempotency_key == idempotency_key)
        return self.db.execute(stmt).scalar_one_or_none()
