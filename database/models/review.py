import uuid

from sqlalchemy import Column, Integer, Text, TIMESTAMP, ForeignKey, Uuid, UniqueConstraint, Index, func
from sqlalchemy.orm import relationship

from .base import Base


class Review(Base):
    """Customer rating for a completed job; the source of quality score."""
    __tablename__ = 'review'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid, ForeignKey('job.id', ondelete='CASCADE'), nullable=False)
    contractor_id = Column(Uuid, ForeignKey('contractor_profile.id', ondelete='CASCADE'), nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    contractor = relationship("ContractorProfile", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint('job_id', name='uq_review_job'),
        Index('idx_review_contractor', 'contractor_id'),
    )
