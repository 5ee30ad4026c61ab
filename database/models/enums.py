import enum


class JobStatus(str, enum.Enum):
    CREATED = "CREATED"
    OFFERED = "OFFERED"
    CLAIMED = "CLAIMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# States from which a contractor may still claim the job
CLAIMABLE_JOB_STATUSES = (JobStatus.CREATED, JobStatus.OFFERED)


class PayoutStatus(str, enum.Enum):
    UNSETTLED = "UNSETTLED"
    SETTLED = "SETTLED"


class ContractorStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class AssignmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class PayoutRecordStatus(str, enum.Enum):
    PAID = "PAID"


class DayOfWeek(str, enum.Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"
