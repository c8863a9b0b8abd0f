"""Availability domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.constants import DayOfWeek
from ...shared.validators import validate_time_hhmm


class TimeSlot(BaseModel):
    startTime: str
    endTime: str
    isAvailable: bool = True

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_hhmm(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.startTime >= self.endTime:
            raise ValueError("Slot end time must be after its start time")
        return self


class AvailabilityCreate(BaseModel):
    """Schema for a provider's recurring availability on one weekday"""

    dayOfWeek: DayOfWeek
    timeSlots: list[TimeSlot] = Field(..., min_length=1)
    notes: Optional[str] = None


class AvailabilityUpdate(BaseModel):
    timeSlots: Optional[list[TimeSlot]] = None
    isActive: Optional[bool] = None
    notes: Optional[str] = None


class AvailabilityResponse(BaseModel):
    id: int
    providerId: int
    dayOfWeek: str
    timeSlots: list[TimeSlot]
    isActive: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class AvailabilityCheckResponse(BaseModel):
    providerId: int
    date: date
    startTime: str
    endTime: str
    available: bool
