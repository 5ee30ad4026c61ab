#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from datetime import datetime
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional


class OfferRequest(BaseModel):
    """Offer a job to specific contractors, or to the top-ranked ones when omitted."""
    contractor_ids: Optional[List[str]] = Field(
        None,
        description="Contractor ids to offer to; null runs matching and offers to the top candidates"
    )


class ContractorActionRequest(BaseModel):
    """Claim, decline or complete a job on behalf of a contractor."""
    contractor_id: str = Field(..., description="Acting contractor id")


class PayoutRunRequest(BaseModel):
    """Run a payout batch; defaults to the configured period ending now."""
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    @model_validator(mode="after")
    def _both_or_neither(self):
        if (self.period_start is None) != (self.period_end is None):
            raise ValueError("period_start and period_end must be given together")
        return self
