import uuid

from sqlalchemy import Column, Text, Float, Integer, Boolean, TIMESTAMP, ForeignKey, Uuid, Enum, Index, func
from sqlalchemy.orm import relationship

from .base import Base
from .enums import ContractorStatus, DayOfWeek


class ContractorProfile(Base):
    """
    An independent contractor eligible for matching.

    Rate fields are owned by the metrics recalculator. A NULL rate means
    "no history yet" and is scored without penalty.
    """
    __tablename__ = 'contractor_profile'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    status = Column(Enum(ContractorStatus, native_enum=False, length=32), nullable=False, default=ContractorStatus.PENDING_APPROVAL)
    account_active = Column(Boolean, nullable=False, default=True)

    latitude = Column(Float)
    longitude = Column(Float)
    service_radius_km = Column(Float, nullable=False, default=10.0)

    # Performance
    rating = Column(Float)  # 0-5
    acceptance_rate = Column(Float)  # 0-1
    completion_rate = Column(Float)  # 0-1
    quality_score = Column(Float)
    total_ratings = Column(Integer, nullable=False, default=0)

    offered_count = Column(Integer, nullable=False, default=0)
    accepted_count = Column(Integer, nullable=False, default=0)
    completed_count = Column(Integer, nullable=False, default=0)

    # Destination account at the transfer gateway
    payout_account_id = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    availability = relationship("AvailabilityWindow", back_populates="contractor", cascade="all, delete-orphan")
    assignments = relationship("Assignment", back_populates="contractor")
    reviews = relationship("Review", back_populates="contractor")

    __table_args__ = (
        Index('idx_contractor_status', 'status', 'account_active'),
    )


class AvailabilityWindow(Base):
    __tablename__ = 'availability_window'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contractor_id = Column(Uuid, ForeignKey('contractor_profile.id', ondelete='CASCADE'), nullable=False)

    day_of_week = Column(Enum(DayOfWeek, native_enum=False, length=16), nullable=False)
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    contractor = relationship("ContractorProfile", back_populates="availability")

    __table_args__ = (
        Index('idx_availability_contractor', 'contractor_id'),
    )
