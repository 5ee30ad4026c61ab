#!/usr/bin/env python3
"""
Earnings Summary - a contractor's net earnings by period.

Uses the same fee split as the payout batch so "pending" here is exactly
what the next batch would settle (before the minimum-payout check).
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from core.errors import NotFoundError
from core.utils import ensure_utc, parse_uuid, utcnow
from database.models import PayoutStatus
from database.uow import dispatch_uow

logger = logging.getLogger(__name__)


@dataclass
class EarningsSummary:
    contractor_id: uuid.UUID
    this_week: Decimal = Decimal("0.00")
    this_month: Decimal = Decimal("0.00")
    pending: Decimal = Decimal("0.00")
    lifetime: Decimal = Decimal("0.00")
    pending_jobs: List[Dict[str, Any]] = field(default_factory=list)
    recent_payouts: List[Dict[str, Any]] = field(default_factory=list)


def week_start(now: datetime) -> datetime:
    """Monday 00:00 of the week containing ``now``."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=now.weekday())


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class EarningsService:
    def __init__(self, processor, uow_factory: Callable = dispatch_uow):
        # Reuses the processor's fee split
        self.processor = processor
        self.uow_factory = uow_factory

    def summarize(self, contractor_id: Any, now: Optional[datetime] = None, payout_limit: int = 10) -> EarningsSummary:
        contractor_id = parse_uuid(contractor_id, "contractor id")
        now = ensure_utc(now or utcnow())
        this_week_from = week_start(now)
        this_month_from = month_start(now)

        summary = EarningsSummary(contractor_id=contractor_id)

        with self.uow_factory() as repo:
            if repo.contractors.get(contractor_id) is None:
                raise NotFoundError(f"Contractor {contractor_id} not found")

            for job in repo.jobs.get_completed_for_contractor(contractor_id):
                net = self.processor.net_amount(job.total_price)
                scheduled = ensure_utc(job.scheduled_at)

                summary.lifetime += net
                if this_week_from <= scheduled < this_week_from + timedelta(days=7):
                    summary.this_week += net
                if scheduled >= this_month_from and scheduled.month == now.month and scheduled.year == now.year:
                    summary.this_month += net

                if job.payout_status == PayoutStatus.UNSETTLED:
                    summary.pending += net
                    summary.pending_jobs.append({
                        'job_id': str(job.id),
                        'scheduled_at': scheduled.isoformat(),
                        'amount': net,
                    })

            for payout in repo.payouts.get_for_contractor(contractor_id, limit=payout_limit):
                summary.recent_payouts.append({
                    'payout_id': str(payout.id),
                    'amount': Decimal(str(payout.amount)),
                    'currency': payout.currency,
                    'transfer_id': payout.transfer_id,
                    'job_count': payout.job_count,
                    'period_end': ensure_utc(payout.period_end).isoformat(),
                })

        return summary
