"""Tracking repository - Database operations for location tracking"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_tracking import LocationTracking


class TrackingRepository:
    """Repository for location tracking database operations"""

    @staticmethod
    def get_active(db: Session, session_id: int) -> Optional[LocationTracking]:
        return (
            db.query(LocationTracking)
            .filter(LocationTracking.session_id == session_id, LocationTracking.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_active_for_provider(
        db: Session, session_id: int, provider_id: int
    ) -> Optional[LocationTracking]:
        return (
            db.query(LocationTracking)
            .filter(
                LocationTracking.session_id == session_id,
                LocationTracking.provider_id == provider_id,
                LocationTracking.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def create(db: Session, **tracking_data) -> LocationTracking:
        """Stage a tracking record; the caller commits it with the session change"""
        tracking = LocationTracking(**tracking_data)
        db.add(tracking)
        return tracking

    @staticmethod
    def save(db: Session, tracking: LocationTracking) -> LocationTracking:
        db.commit()
        db.refresh(tracking)
        return tracking
