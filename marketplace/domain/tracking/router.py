"""Tracking router - Live location endpoints for a session"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ..settlement.publisher import EarningsSettlement, get_earnings_settlement
from .schemas import (
    LocationUpdateRequest,
    SeekerTrackingResponse,
    StartTrackingRequest,
    StopTrackingResponse,
    TrackingResponse,
    to_tracking_response,
)
from .service import LocationTrackingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions/{session_id}/tracking", tags=["Location Tracking"])


def get_tracking_service(
    db: Session = Depends(get_db),
    settlement: EarningsSettlement = Depends(get_earnings_settlement),
) -> LocationTrackingService:
    """Dependency injection for LocationTrackingService"""
    return LocationTrackingService(db, settlement=settlement)


@router.post("/start", response_model=TrackingResponse)
async def start_tracking(
    session_id: int,
    data: StartTrackingRequest,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    return to_tracking_response(service.start_tracking(session_id, data, current_user))


@router.put("/location", response_model=TrackingResponse)
async def update_location(
    session_id: int,
    data: LocationUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    return to_tracking_response(service.update_location(session_id, data, current_user))


@router.post("/arrived", response_model=TrackingResponse)
async def mark_arrived(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    return to_tracking_response(service.mark_arrived(session_id, current_user))


@router.post("/service-started", response_model=TrackingResponse)
async def mark_service_started(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    return to_tracking_response(service.mark_service_started(session_id, current_user))


@router.post("/complete", response_model=TrackingResponse)
async def complete_service(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    """Finish the job: closes tracking and completes the session"""
    return to_tracking_response(service.complete_service(session_id, current_user))


@router.post("/stop", response_model=StopTrackingResponse)
async def stop_tracking(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    return service.stop_tracking(session_id, current_user)


@router.get("", response_model=SeekerTrackingResponse)
async def get_seeker_tracking(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    """Seeker's live view of the provider"""
    return service.get_seeker_tracking(session_id, current_user)


@router.get("/provider", response_model=TrackingResponse)
async def get_provider_tracking(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: LocationTrackingService = Depends(get_tracking_service),
):
    return to_tracking_response(service.get_provider_tracking(session_id, current_user))
