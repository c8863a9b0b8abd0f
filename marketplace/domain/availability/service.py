"""Availability service - Weekly provider availability and slot checks"""

import logging
from datetime import date

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_session import Availability
from ...shared.constants import DayOfWeek
from ...shared.timeutils import day_of_week_for
from ...shared.validators import validate_time_hhmm, validate_time_slots
from .repository import AvailabilityRepository
from .schemas import AvailabilityCreate, AvailabilityUpdate

logger = logging.getLogger(__name__)

DEFAULT_WORKING_DAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
)
DEFAULT_SLOT = {"startTime": "09:00", "endTime": "17:00", "isAvailable": True}


class AvailabilityService:
    """Service layer for provider availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def create(self, provider_id: int, data: AvailabilityCreate) -> Availability:
        day = data.dayOfWeek.value
        if self.repo.get_for_day(self.db, provider_id, day):
            raise HTTPException(status_code=400, detail=f"Availability already exists for {day}")

        availability = self.repo.create(
            self.db,
            provider_id=provider_id,
            day_of_week=day,
            time_slots=_normalize_slots([s.model_dump() for s in data.timeSlots]),
            is_active=True,
            notes=data.notes,
        )
        logger.info(f"📅 Availability created for provider {provider_id} on {day}")
        return availability

    def find_by_provider(self, provider_id: int) -> list[Availability]:
        """Active weekly entries, Monday first"""
        return self.repo.get_active_by_provider(self.db, provider_id)

    def find_by_provider_and_date(self, provider_id: int, session_date: date):
        return self.repo.get_active_for_day(self.db, provider_id, day_of_week_for(session_date).value)

    def update(self, availability_id: int, provider_id: int, data: AvailabilityUpdate) -> Availability:
        availability = self.repo.get_by_id(self.db, availability_id, provider_id)
        if not availability:
            raise HTTPException(status_code=404, detail="Availability not found")

        time_slots = None
        if data.timeSlots is not None:
            time_slots = _normalize_slots([s.model_dump() for s in data.timeSlots])

        return self.repo.update(
            self.db,
            availability,
            time_slots=time_slots,
            is_active=data.isActive,
            notes=data.notes,
        )

    def remove(self, availability_id: int, provider_id: int) -> None:
        availability = self.repo.get_by_id(self.db, availability_id, provider_id)
        if not availability:
            raise HTTPException(status_code=404, detail="Availability not found")

        self.repo.delete(self.db, availability)
        logger.info(f"🗑️ Availability {availability_id} removed for provider {provider_id}")

    def is_available(self, provider_id: int, session_date: date, start_time: str, end_time: str) -> bool:
        """
        True when the whole range fits inside one available slot of the
        provider's entry for that weekday.

        Adjacent slots are not combined: 09:00-12:00 plus 12:00-17:00 does not
        cover a 11:00-13:00 request.
        """
        availability = self.find_by_provider_and_date(provider_id, session_date)
        if not availability or not availability.is_active:
            return False

        start_time = validate_time_hhmm(start_time)
        end_time = validate_time_hhmm(end_time)

        return any(
            slot.get("isAvailable", True)
            and start_time >= slot["startTime"]
            and end_time <= slot["endTime"]
            for slot in availability.time_slots or []
        )

    def set_default_availability(self, provider_id: int) -> list[Availability]:
        """Give the provider Monday to Friday 09:00-17:00 on days they have not configured"""
        created = []
        for day in DEFAULT_WORKING_DAYS:
            if self.repo.get_for_day(self.db, provider_id, day.value):
                continue
            created.append(
                self.repo.create(
                    self.db,
                    provider_id=provider_id,
                    day_of_week=day.value,
                    time_slots=[dict(DEFAULT_SLOT)],
                    is_active=True,
                    notes="Default availability",
                )
            )

        logger.info(f"📅 Default availability set for provider {provider_id}: {len(created)} days added")
        return created


def _normalize_slots(slots: list[dict]) -> list[dict]:
    try:
        return validate_time_slots(slots)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
