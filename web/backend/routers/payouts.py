#!/usr/bin/env python3
"""
Payout endpoints - trigger a settlement batch on demand.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends

from core.app_context import AppContext
from core.utils import ensure_utc
from pipeline.scheduler import settlement_period
from ..dependencies import get_app_context
from ..models.requests import PayoutRunRequest
from ..models.responses import PaidPayoutSummary, PayoutReportResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payouts", tags=["payouts"])


@router.post("/run", response_model=PayoutReportResponse)
def run_payouts(
    request: Optional[PayoutRunRequest] = None,
    ctx: AppContext = Depends(get_app_context)
):
    """
    Run one payout batch.

    Without a period, settles the configured number of days ending at the
    latest scheduled payout time.
    Per-contractor failures are reported, not raised.
    """
    if request is None or request.period_start is None:
        period_start, period_end = settlement_period(ctx.config.settlement)
    else:
        period_start, period_end = ensure_utc(request.period_start), ensure_utc(request.period_end)

    logger.info(f"Payout batch requested for {period_start.isoformat()} -> {period_end.isoformat()}")
    report = ctx.payout_processor.run(period_start, period_end)

    return PayoutReportResponse(
        success=report.error is None,
        period_start=report.period_start,
        period_end=report.period_end,
        total_paid=report.total_paid,
        paid=[
            PaidPayoutSummary(
                payout_id=str(p.payout_id),
                contractor_id=str(p.contractor_id),
                amount=p.amount,
                currency=p.currency,
                transfer_id=p.transfer_id,
                job_count=len(p.job_ids)
            )
            for p in report.paid
        ],
        skipped=[str(c) for c in report.skipped],
        failed=[str(c) for c in report.failed],
        missing_account=[str(c) for c in report.missing_account],
        error=report.error
    )
