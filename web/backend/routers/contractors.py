#!/usr/bin/env python3
"""
Contractor endpoints - performance metrics and earnings.
"""

import logging
from fastapi import APIRouter, Depends

from core.app_context import AppContext
from ..dependencies import get_app_context
from ..models.responses import EarningsResponse, MetricsResponse, PayoutSummary, PendingJob

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contractors", tags=["contractors"])


@router.post("/{contractor_id}/metrics", response_model=MetricsResponse)
def recompute_metrics(
    contractor_id: str,
    ctx: AppContext = Depends(get_app_context)
):
    """Recompute acceptance, completion and quality from stored history."""
    metrics = ctx.metrics.recompute(contractor_id)

    return MetricsResponse(
        success=True,
        contractor_id=str(metrics.contractor_id),
        acceptance_rate=metrics.acceptance_rate,
        completion_rate=metrics.completion_rate,
        quality_score=metrics.quality_score,
        total_ratings=metrics.total_ratings,
        offered_count=metrics.offered_count,
        accepted_count=metrics.accepted_count,
        completed_count=metrics.completed_count
    )


@router.get("/{contractor_id}/earnings", response_model=EarningsResponse)
def get_earnings(
    contractor_id: str,
    ctx: AppContext = Depends(get_app_context)
):
    """
    Net earnings (after platform and insurance fees) for this week
    (Monday start), this month, pending settlement and lifetime.
    """
    summary = ctx.earnings.summarize(contractor_id)

    return EarningsResponse(
        success=True,
        contractor_id=str(summary.contractor_id),
        this_week=summary.this_week,
        this_month=summary.this_month,
        pending=summary.pending,
        lifetime=summary.lifetime,
        pending_jobs=[PendingJob(**job) for job in summary.pending_jobs],
        recent_payouts=[PayoutSummary(**payout) for payout in summary.recent_payouts]
    )
