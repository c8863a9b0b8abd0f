"""
Live location tracking for a provider travelling to and working a session
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class LocationTracking(Base):
    __tablename__ = "location_tracking"
    __table_args__ = (
        Index("ix_tracking_session_active", "session_id", "is_active"),
        Index("ix_tracking_provider_status", "provider_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    seeker_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Provider's current position
    current_latitude = Column(Float, nullable=False)
    current_longitude = Column(Float, nullable=False)

    # Service destination
    service_latitude = Column(Float, nullable=False)
    service_longitude = Column(Float, nullable=False)

    # on_route -> at_location -> service_complete
    status = Column(String(20), default="on_route", nullable=False)

    distance_to_destination = Column(Float, nullable=True)  # meters
    speed = Column(Float, nullable=True)  # m/s
    accuracy = Column(Float, nullable=True)  # meters

    estimated_arrival_time = Column(DateTime, nullable=True)
    arrived_at = Column(DateTime, nullable=True)
    service_started_at = Column(DateTime, nullable=True)
    service_completed_at = Column(DateTime, nullable=True)

    # Deactivated (never deleted) on completion or stop
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    session = relationship("ServiceSession")
    provider = relationship("User", foreign_keys=[provider_id])
