"""Availability repository - Database operations for provider availability"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_session import Availability

# Monday first, matching DayOfWeek declaration order
_DAY_ORDER = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class AvailabilityRepository:
    """Repository for availability database operations"""

    @staticmethod
    def get_by_id(db: Session, availability_id: int, provider_id: int) -> Optional[Availability]:
        return (
            db.query(Availability)
            .filter(Availability.id == availability_id, Availability.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_for_day(db: Session, provider_id: int, day_of_week: str) -> Optional[Availability]:
        """Get the entry for a weekday regardless of whether it is active"""
        return (
            db.query(Availability)
            .filter(
                Availability.provider_id == provider_id,
                Availability.day_of_week == day_of_week,
            )
            .first()
        )

    @staticmethod
    def get_active_for_day(
        db: Session, provider_id: int, day_of_week: str
    ) -> Optional[Availability]:
        return (
            db.query(Availability)
            .filter(
                Availability.provider_id == provider_id,
                Availability.day_of_week == day_of_week,
                Availability.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def get_active_by_provider(db: Session, provider_id: int) -> list[Availability]:
        rows = (
            db.query(Availability)
            .filter(Availability.provider_id == provider_id, Availability.is_active.is_(True))
            .all()
        )
        return sorted(rows, key=lambda a: _DAY_ORDER.index(a.day_of_week))

    @staticmethod
    def create(db: Session, **data) -> Availability:
        availability = Availability(**data)
        db.add(availability)
        db.commit()
        db.refresh(availability)
        return availability

    @staticmethod
    def update(db: Session, availability: Availability, **updates) -> Availability:
        for key, value in updates.items():
            if value is not None and hasattr(availability, key):
                setattr(availability, key, value)

        db.commit()
        db.refresh(availability)
        return availability

    @staticmethod
    def delete(db: Session, availability: Availability) -> None:
        db.delete(availability)
        db.commit()
