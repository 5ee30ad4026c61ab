#!/usr/bin/env python3
"""
Settlement Models - Data structures for payout batch runs.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


@dataclass
class ContractorGroup:
    """Completed, unsettled jobs of one contractor awaiting a payout."""
    contractor_id: uuid.UUID
    payout_account_id: str
    job_ids: List[uuid.UUID] = field(default_factory=list)
    net_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class PaidPayout:
    payout_id: uuid.UUID
    contractor_id: uuid.UUID
    amount: Decimal
    currency: str
    transfer_id: str
    job_ids: List[uuid.UUID]
    period_start: datetime
    period_end: datetime


@dataclass
class PayoutBatchReport:
    """
    Outcome of one batch run.

    - paid: one entry per successful transfer
    - skipped: contractors whose group was below the minimum payout
    - failed: contractors whose transfer or settlement write failed
    - missing_account: contractors with eligible jobs but no payable account
    - error: set when the run could not collect jobs at all
    """
    period_start: datetime
    period_end: datetime
    paid: List[PaidPayout] = field(default_factory=list)
    skipped: List[uuid.UUID] = field(default_factory=list)
    failed: List[uuid.UUID] = field(default_factory=list)
    missing_account: List[uuid.UUID] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.paid), Decimal("0.00"))
