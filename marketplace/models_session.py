"""
Booking models: sessions and the weekly availability they are scheduled against
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class ServiceSession(Base):
    """One booking between a seeker and (eventually) a provider"""

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_provider_date", "provider_id", "session_date"),
        Index("ix_sessions_seeker_status", "seeker_id", "status"),
        Index("ix_sessions_status_payment", "status", "payment_status"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Parties
    seeker_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # Set by admin assignment

    # Service reference
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    service_name = Column(String(255), nullable=False)  # Cached service title
    category = Column(String(50), nullable=False)

    # Scheduling
    session_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:mm
    end_time = Column(String(5), nullable=False)  # HH:mm
    duration_hours = Column(Float, nullable=False)  # Requested duration
    base_duration = Column(Float, nullable=False)
    overtime_hours = Column(Float, default=0, nullable=False)

    # Pricing snapshot
    base_price = Column(Float, nullable=False)
    overtime_price = Column(Float, default=0, nullable=False)
    total_amount = Column(Float, nullable=False)  # base_price + overtime_price
    currency = Column(String(10), default="FCFA", nullable=False)

    # Status workflow:
    # pending_assignment -> assigned -> confirmed -> in_progress -> completed
    # legacy: pending -> confirmed -> in_progress -> completed
    # cancelled / rejected are terminal
    status = Column(String(30), default="pending_assignment", nullable=False, index=True)
    payment_status = Column(String(20), default="pending", nullable=False)

    notes = Column(Text, nullable=True)

    # Assignment
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime, nullable=True)
    assignment_notes = Column(Text, nullable=True)

    # Rejection
    rejection_reason = Column(Text, nullable=True)
    rejected_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_at = Column(DateTime, nullable=True)

    # Cancellation
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Location
    service_location = Column(String(50), nullable=True)  # CameroonProvince
    service_address = Column(String(500), nullable=True)
    service_latitude = Column(Float, nullable=True)
    service_longitude = Column(Float, nullable=True)

    # Reviews (1-5)
    seeker_rating = Column(Integer, nullable=True)
    seeker_review = Column(Text, nullable=True)
    provider_rating = Column(Integer, nullable=True)
    provider_review = Column(Text, nullable=True)

    # Settlement
    earnings_settled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    seeker = relationship("User", foreign_keys=[seeker_id])
    provider = relationship("User", foreign_keys=[provider_id])
    service = relationship("Service")


class Availability(Base):
    """Weekly recurring availability for one provider on one weekday"""

    __tablename__ = "availabilities"
    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_provider_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)  # monday ... sunday
    # [{"startTime": "09:00", "endTime": "17:00", "isAvailable": true}, ...]
    time_slots = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("User")
