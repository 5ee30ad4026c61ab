import uuid

from sqlalchemy import Column, Text, Integer, Numeric, TIMESTAMP, ForeignKey, Uuid, Enum, UniqueConstraint, Index, func
from sqlalchemy.orm import relationship

from .base import Base
from .enums import PayoutRecordStatus


class Payout(Base):
    """
    One settled transfer to a contractor for a batch run.

    Jobs point back at their payout through job.payout_id, so a job can
    only ever contribute to a single payout.
    """
    __tablename__ = 'payout'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contractor_id = Column(Uuid, ForeignKey('contractor_profile.id', ondelete='RESTRICT'), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(Text, nullable=False, default='usd')
    status = Column(Enum(PayoutRecordStatus, native_enum=False, length=32), nullable=False, default=PayoutRecordStatus.PAID)

    transfer_id = Column(Text, nullable=False)
    idempotency_key = Column(Text, nullable=False)

    period_start = Column(TIMESTAMP(timezone=True), nullable=False)
    period_end = Column(TIMESTAMP(timezone=True), nullable=False)
    job_count = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    jobs = relationship("Job", back_populates="payout")

    __table_args__ = (
        UniqueConstraint('idempotency_key', name='uq_payout_idempotency_key'),
        Index('idx_payout_contractor', 'contractor_id', 'created_at'),
    )
