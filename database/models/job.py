import uuid

from sqlalchemy import Column, Float, Numeric, TIMESTAMP, ForeignKey, Uuid, Enum, Index, func
from sqlalchemy.orm import relationship

from .base import Base
from .enums import JobStatus, PayoutStatus


class Job(Base):
    """
    A scheduled service request (booking).

    Creation and pricing belong to the checkout flow; this table is only
    written by the dispatch core for status and settlement transitions.
    """
    __tablename__ = 'job'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    status = Column(Enum(JobStatus, native_enum=False, length=32), nullable=False, default=JobStatus.CREATED)
    scheduled_at = Column(TIMESTAMP(timezone=True), nullable=False)

    # Pre-resolved by the address flow; geocoding is not done here
    latitude = Column(Float)
    longitude = Column(Float)

    total_price = Column(Numeric(10, 2), nullable=False)

    payout_status = Column(Enum(PayoutStatus, native_enum=False, length=32), nullable=False, default=PayoutStatus.UNSETTLED)
    payout_id = Column(Uuid, ForeignKey('payout.id', ondelete='SET NULL'), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    assignments = relationship("Assignment", back_populates="job", cascade="all, delete-orphan")
    payout = relationship("Payout", back_populates="jobs")

    __table_args__ = (
        Index('idx_job_status', 'status'),
        Index('idx_job_settlement', 'status', 'payout_status'),
        Index('idx_job_scheduled', 'scheduled_at'),
    )
