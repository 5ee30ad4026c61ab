from .base import Base
from .enums import (
    JobStatus, PayoutStatus, ContractorStatus, AssignmentStatus,
    PayoutRecordStatus, DayOfWeek, CLAIMABLE_JOB_STATUSES,
)
from .job import Job
from .contractor import ContractorProfile, AvailabilityWindow
from .assignment import Assignment
from .review import Review
from .payout import Payout

__all__ = [
    'Base',
    'JobStatus',
    'PayoutStatus',
    'ContractorStatus',
    'AssignmentStatus',
    'PayoutRecordStatus',
    'DayOfWeek',
    'CLAIMABLE_JOB_STATUSES',
    'Job',
    'ContractorProfile',
    'AvailabilityWindow',
    'Assignment',
    'Review',
    'Payout',
]
