"""Availability router - Provider weekly availability endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...models_session import Availability
from ...shared.constants import UserRole
from ...shared.validators import validate_time_hhmm
from .schemas import (
    AvailabilityCheckResponse,
    AvailabilityCreate,
    AvailabilityResponse,
    AvailabilityUpdate,
    TimeSlot,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def _target_provider_id(user: User, provider_id: Optional[int]) -> int:
    """Providers manage their own calendar; admins may act on behalf of a provider"""
    if user.role == UserRole.ADMIN.value:
        if provider_id is None:
            raise HTTPException(status_code=400, detail="providerId is required for admin requests")
        return provider_id
    if user.role != UserRole.PROVIDER.value:
        raise HTTPException(status_code=403, detail="Only providers can manage availability")
    if provider_id is not None and provider_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot manage another provider's availability")
    return user.id


def _to_response(availability: Availability) -> AvailabilityResponse:
    return AvailabilityResponse(
        id=availability.id,
        providerId=availability.provider_id,
        dayOfWeek=availability.day_of_week,
        timeSlots=[TimeSlot(**slot) for slot in availability.time_slots or []],
        isActive=availability.is_active,
        notes=availability.notes,
        created_at=availability.created_at,
    )


@router.post("", response_model=AvailabilityResponse)
async def create_availability(
    data: AvailabilityCreate,
    providerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    provider_id = _target_provider_id(current_user, providerId)
    return _to_response(service.create(provider_id, data))


@router.get("", response_model=list[AvailabilityResponse])
async def get_my_availability(
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Get the current provider's weekly availability"""
    provider_id = _target_provider_id(current_user, None)
    return [_to_response(a) for a in service.find_by_provider(provider_id)]


@router.get("/provider/{provider_id}", response_model=list[AvailabilityResponse])
async def get_provider_availability(
    provider_id: int,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Public view of a provider's weekly availability"""
    return [_to_response(a) for a in service.find_by_provider(provider_id)]


@router.get("/check", response_model=AvailabilityCheckResponse)
async def check_availability(
    providerId: int,
    date: date,
    startTime: str,
    endTime: str,
    service: AvailabilityService = Depends(get_availability_service),
):
    try:
        start_time = validate_time_hhmm(startTime)
        end_time = validate_time_hhmm(endTime)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return AvailabilityCheckResponse(
        providerId=providerId,
        date=date,
        startTime=start_time,
        endTime=end_time,
        available=service.is_available(providerId, date, start_time, end_time),
    )


@router.post("/default", response_model=list[AvailabilityResponse])
async def set_default_availability(
    providerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Fill Monday to Friday 09:00-17:00 for days without an entry"""
    provider_id = _target_provider_id(current_user, providerId)
    return [_to_response(a) for a in service.set_default_availability(provider_id)]


@router.put("/{availability_id}", response_model=AvailabilityResponse)
async def update_availability(
    availability_id: int,
    data: AvailabilityUpdate,
    providerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    provider_id = _target_provider_id(current_user, providerId)
    return _to_response(service.update(availability_id, provider_id, data))


@router.delete("/{availability_id}")
async def delete_availability(
    availability_id: int,
    providerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    provider_id = _target_provider_id(current_user, providerId)
    service.remove(availability_id, provider_id)
    return {"message": "Availability deleted successfully"}
