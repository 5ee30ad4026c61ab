#!/usr/bin/env python3
"""
Dispatch Models - detached snapshots of assignment rows.

Services return these instead of ORM instances because the unit of work
closes its session before the caller sees the result.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from database.models import Assignment, AssignmentStatus


@dataclass(frozen=True)
class AssignmentRecord:
    id: uuid.UUID
    job_id: uuid.UUID
    contractor_id: uuid.UUID
    status: AssignmentStatus
    expires_at: datetime
    responded_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, assignment: Assignment) -> "AssignmentRecord":
        return cls(
            id=assignment.id,
            job_id=assignment.job_id,
            contractor_id=assignment.contractor_id,
            status=assignment.status,
            expires_at=assignment.expires_at,
            responded_at=assignment.responded_at,
        )
