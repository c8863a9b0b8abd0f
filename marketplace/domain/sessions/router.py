"""Session router - FastAPI endpoints for bookings and service requests"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_provider
from ...database import get_db
from ...models import User
from ...shared.constants import SessionStatus
from ..settlement.publisher import EarningsSettlement, get_earnings_settlement
from .schemas import (
    CancelSessionRequest,
    DeclineAssignmentRequest,
    ReviewCreate,
    ServiceRequestCreate,
    ServiceRequestResponse,
    ServiceRequestStatusResponse,
    SessionCreate,
    SessionListResponse,
    SessionResponse,
    SessionUpdate,
    to_session_response,
)
from .service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])
service_requests_router = APIRouter(prefix="/service-requests", tags=["Service Requests"])


def get_session_service(
    db: Session = Depends(get_db),
    settlement: EarningsSettlement = Depends(get_earnings_settlement),
) -> SessionService:
    """Dependency injection for SessionService"""
    return SessionService(db, settlement=settlement)


def _list_response(result: dict) -> SessionListResponse:
    return SessionListResponse(
        sessions=[to_session_response(s) for s in result["sessions"]],
        pagination=result["pagination"],
        summary=result.get("summary"),
    )


# ============================================================================
# SESSIONS
# ============================================================================


@router.post("", response_model=SessionResponse)
async def create_session(
    data: SessionCreate,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Book a specific provider's service"""
    return to_session_response(service.create_session(data, current_user))


@router.get("", response_model=SessionListResponse)
async def get_all_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[SessionStatus] = Query(None),
    seekerId: Optional[int] = Query(None),
    providerId: Optional[int] = Query(None),
    admin: User = Depends(require_admin),
    service: SessionService = Depends(get_session_service),
):
    """List all sessions (admin only)"""
    result = service.find_all(
        page=page,
        limit=limit,
        status=status.value if status else None,
        seeker_id=seekerId,
        provider_id=providerId,
    )
    return _list_response(result)


@router.get("/seeker", response_model=SessionListResponse)
async def get_seeker_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[SessionStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Sessions booked by the current user"""
    result = service.find_by_seeker(
        current_user.id, status.value if status else None, page, limit
    )
    return _list_response(result)


@router.get("/provider", response_model=SessionListResponse)
async def get_provider_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[SessionStatus] = Query(None),
    current_user: User = Depends(require_provider),
    service: SessionService = Depends(get_session_service),
):
    """Sessions assigned to the current provider, with earnings summary"""
    result = service.find_by_provider(
        current_user.id, status.value if status else None, page, limit
    )
    return _list_response(result)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    return to_session_response(service.find_one(session_id, current_user))


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: int,
    data: SessionUpdate,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    return to_session_response(service.update_session(session_id, data, current_user))


@router.post("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(
    session_id: int,
    data: Optional[CancelSessionRequest] = None,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    reason = data.reason if data else None
    return to_session_response(service.cancel_session(session_id, current_user, reason))


@router.post("/{session_id}/confirm", response_model=SessionResponse)
async def confirm_assignment(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Assigned provider accepts the session"""
    return to_session_response(service.confirm_assignment(session_id, current_user))


@router.post("/{session_id}/decline", response_model=SessionResponse)
async def decline_assignment(
    session_id: int,
    data: Optional[DeclineAssignmentRequest] = None,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Assigned provider turns the session down"""
    reason = data.reason if data else None
    return to_session_response(service.decline_assignment(session_id, current_user, reason))


@router.post("/{session_id}/review", response_model=SessionResponse)
async def submit_review(
    session_id: int,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    return to_session_response(service.submit_review(session_id, current_user, data))


# ============================================================================
# SERVICE REQUESTS
# ============================================================================


@service_requests_router.post("", response_model=ServiceRequestResponse)
async def create_service_request(
    data: ServiceRequestCreate,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """Submit a request for an admin to assign a provider to"""
    return service.create_service_request(data, current_user)


@service_requests_router.get("/my-requests", response_model=SessionListResponse)
async def get_my_service_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[SessionStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    result = service.find_by_seeker(
        current_user.id, status.value if status else None, page, limit
    )
    return _list_response(result)


@service_requests_router.get("/{request_id}/status", response_model=ServiceRequestStatusResponse)
async def get_service_request_status(
    request_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    session = service.get_service_request_status(request_id, current_user)
    return ServiceRequestStatusResponse(
        requestId=session.id,
        status=session.status,
        category=session.category,
        serviceDate=session.session_date,
        startTime=session.start_time,
        endTime=session.end_time,
        duration=session.duration_hours,
        totalAmount=session.total_amount,
        serviceLocation=session.service_location,
        serviceAddress=session.service_address,
        notes=session.notes,
        seekerId=session.seeker_id,
        providerId=session.provider_id,
        assignedAt=session.assigned_at,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )
