#!/usr/bin/env python3
"""
Job endpoints - matching, offers and the claim protocol.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from core.dispatch import AssignmentRecord
from database.models import JobStatus
from ..dependencies import get_app_context
from ..models.requests import OfferRequest, ContractorActionRequest
from ..models.responses import (
    AssignmentResponse,
    CandidateSummary,
    JobActionResponse,
    MatchesResponse,
    OffersResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def _assignment_response(record: AssignmentRecord) -> AssignmentResponse:
    return AssignmentResponse(
        success=True,
        assignment_id=str(record.id),
        job_id=str(record.job_id),
        contractor_id=str(record.contractor_id),
        status=record.status.value,
        expires_at=record.expires_at,
        responded_at=record.responded_at
    )


@router.get("/{job_id}/matches", response_model=MatchesResponse)
def get_job_matches(
    job_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Maximum candidates to return"),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Rank eligible contractors for a job.

    Sorted by score (highest first), ties broken by contractor id.
    """
    ranked = ctx.match_engine.rank(job_id)
    if limit is not None:
        ranked = ranked[:limit]

    return MatchesResponse(
        success=True,
        job_id=job_id,
        count=len(ranked),
        candidates=[
            CandidateSummary(
                contractor_id=str(c.contractor_id),
                score=c.score,
                distance_km=c.distance_km,
                components=c.components
            )
            for c in ranked
        ]
    )


@router.post("/{job_id}/offers", response_model=OffersResponse)
def create_offers(
    job_id: str,
    request: Optional[OfferRequest] = None,
    ctx: AppContext = Depends(get_app_context)
):
    """
    Offer a job to contractors.

    With no contractor ids the top-ranked candidates are used; a job that
    cannot be matched comes back flagged for manual review.
    """
    if request is None or request.contractor_ids is None:
        result = ctx.dispatch_flow.on_job_created(job_id)
        return OffersResponse(
            success=not result.needs_manual_review,
            job_id=job_id,
            assignment_ids=[str(a) for a in result.assignment_ids],
            offered_to=[str(c) for c in result.offered_to],
            needs_manual_review=result.needs_manual_review,
            error=result.error
        )

    assignment_ids = ctx.ledger.offer(job_id, request.contractor_ids)
    return OffersResponse(
        success=True,
        job_id=job_id,
        assignment_ids=[str(a) for a in assignment_ids],
        offered_to=request.contractor_ids
    )


@router.post("/{job_id}/claim", response_model=AssignmentResponse)
def claim_job(
    job_id: str,
    request: ContractorActionRequest,
    ctx: AppContext = Depends(get_app_context)
):
    """Accept a job. Exactly one contractor wins; everyone else gets 409."""
    return _assignment_response(ctx.ledger.claim(job_id, request.contractor_id))


@router.post("/{job_id}/decline", response_model=AssignmentResponse)
def decline_offer(
    job_id: str,
    request: ContractorActionRequest,
    ctx: AppContext = Depends(get_app_context)
):
    return _assignment_response(ctx.ledger.decline(job_id, request.contractor_id))


@router.post("/{job_id}/start", response_model=JobActionResponse)
def start_job(
    job_id: str,
    request: ContractorActionRequest,
    ctx: AppContext = Depends(get_app_context)
):
    ctx.ledger.start(job_id, request.contractor_id)
    return JobActionResponse(success=True, job_id=job_id, status=JobStatus.IN_PROGRESS.value)


@router.post("/{job_id}/complete", response_model=JobActionResponse)
def complete_job(
    job_id: str,
    request: ContractorActionRequest,
    ctx: AppContext = Depends(get_app_context)
):
    ctx.ledger.complete(job_id, request.contractor_id)
    return JobActionResponse(success=True, job_id=job_id, status=JobStatus.COMPLETED.value)
