#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict


class CandidateSummary(BaseModel):
    """One ranked contractor for a job."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "contractor_id": "550e8400-e29b-41d4-a716-446655440000",
                "score": 0.992,
                "distance_km": 1.0,
                "components": {
                    "rating": 0.98,
                    "distance": 0.98,
                    "acceptance": 1.0,
                    "completion": 1.0
                }
            }
        }
    )

    contractor_id: str
    score: float = Field(ge=0, le=1)
    distance_km: float = Field(ge=0)
    components: Dict[str, float]


class MatchesResponse(BaseModel):
    """Ranked candidates for a job."""
    success: bool
    job_id: str
    count: int
    candidates: List[CandidateSummary]


class OffersResponse(BaseModel):
    success: bool
    job_id: str
    assignment_ids: List[str]
    offered_to: List[str]
    needs_manual_review: bool = False
    error: Optional[str] = None


class AssignmentResponse(BaseModel):
    """Current state of one assignment."""
    success: bool
    assignment_id: str
    job_id: str
    contractor_id: str
    status: str
    expires_at: datetime
    responded_at: Optional[datetime] = None


class JobActionResponse(BaseModel):
    success: bool
    job_id: str
    status: str


class MetricsResponse(BaseModel):
    """Recomputed contractor rates."""
    success: bool
    contractor_id: str
    acceptance_rate: float = Field(ge=0, le=1)
    completion_rate: float = Field(ge=0, le=1)
    quality_score: float = Field(ge=0, le=5)
    total_ratings: int
    offered_count: int
    accepted_count: int
    completed_count: int


class PendingJob(BaseModel):
    job_id: str
    scheduled_at: str
    amount: Decimal


class PayoutSummary(BaseModel):
    payout_id: str
    amount: Decimal
    currency: str
    transfer_id: Optional[str]
    job_count: int
    period_end: str


class EarningsResponse(BaseModel):
    """Net earnings of a contractor, after platform and insurance fees."""
    success: bool
    contractor_id: str
    this_week: Decimal
    this_month: Decimal
    pending: Decimal
    lifetime: Decimal
    pending_jobs: List[PendingJob]
    recent_payouts: List[PayoutSummary]


class PaidPayoutSummary(BaseModel):
    payout_id: str
    contractor_id: str
    amount: Decimal
    currency: str
    transfer_id: str
    job_count: int


class PayoutReportResponse(BaseModel):
    """Outcome of one payout batch."""
    success: bool
    period_start: datetime
    period_end: datetime
    total_paid: Decimal
    paid: List[PaidPayoutSummary]
    skipped: List[str]
    failed: List[str]
    missing_account: List[str]
    error: Optional[str] = None
