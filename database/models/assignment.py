import uuid

from sqlalchemy import Column, TIMESTAMP, ForeignKey, Uuid, Enum, Index, func, text as sql_text
from sqlalchemy.orm import relationship

from .base import Base
from .enums import AssignmentStatus


class Assignment(Base):
    """
    An offer of a job to one contractor, or the accepted claim on it.

    PENDING rows past expires_at are treated as expired at read time even
    before the reaper flips them. At most one row per job is ever ACCEPTED,
    enforced by a partial unique index.
    """
    __tablename__ = 'assignment'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid, ForeignKey('job.id', ondelete='CASCADE'), nullable=False)
    contractor_id = Column(Uuid, ForeignKey('contractor_profile.id', ondelete='CASCADE'), nullable=False)

    status = Column(Enum(AssignmentStatus, native_enum=False, length=32), nullable=False, default=AssignmentStatus.PENDING)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    responded_at = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    job = relationship("Job", back_populates="assignments")
    contractor = relationship("ContractorProfile", back_populates="assignments")

    __table_args__ = (
        Index('idx_assignment_job', 'job_id'),
        Index('idx_assignment_contractor', 'contractor_id', 'status'),
        Index(
            'uq_assignment_job_accepted', 'job_id',
            unique=True,
            postgresql_where=sql_text("status = 'ACCEPTED'"),
            sqlite_where=sql_text("status = 'ACCEPTED'"),
        ),
    )
