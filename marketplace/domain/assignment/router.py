"""Admin assignment router - Endpoints for assigning providers to requests"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...shared.constants import CameroonProvince, ServiceCategory
from ..sessions.schemas import SessionListResponse, SessionResponse, to_session_response
from ..sessions.service import SessionService
from ..settlement.publisher import EarningsSettlement, get_earnings_settlement
from .schemas import (
    AssignmentStats,
    AssignProviderRequest,
    AvailableProvidersResponse,
    ProviderFilters,
    RejectAssignmentRequest,
    RejectAssignmentResponse,
)
from .service import AdminAssignmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/assignments", tags=["Admin Assignments"])


def get_assignment_service(
    db: Session = Depends(get_db),
    settlement: EarningsSettlement = Depends(get_earnings_settlement),
) -> AdminAssignmentService:
    """Dependency injection for AdminAssignmentService"""
    return AdminAssignmentService(db, SessionService(db, settlement=settlement))


@router.get("/pending", response_model=SessionListResponse)
async def get_pending_assignments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    service: AdminAssignmentService = Depends(get_assignment_service),
):
    """Service requests waiting for a provider, oldest first"""
    result = service.get_pending_assignments(page, limit)
    return SessionListResponse(
        sessions=[to_session_response(s) for s in result["sessions"]],
        pagination=result["pagination"],
    )


@router.get("/stats", response_model=AssignmentStats)
async def get_assignment_stats(
    admin: User = Depends(require_admin),
    service: AdminAssignmentService = Depends(get_assignment_service),
):
    return service.get_assignment_stats()


@router.get("/{session_id}/available-providers", response_model=AvailableProvidersResponse)
async def find_available_providers(
    session_id: int,
    category: Optional[ServiceCategory] = Query(None),
    location: Optional[CameroonProvince] = Query(None),
    minRating: Optional[float] = Query(None, ge=0, le=5),
    experienceLevel: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: AdminAssignmentService = Depends(get_assignment_service),
):
    filters = ProviderFilters(
        category=category,
        location=location,
        minRating=minRating,
        experienceLevel=experienceLevel,
    )
    return service.find_available_providers(session_id, filters)


@router.post("/{session_id}/assign", response_model=SessionResponse)
async def assign_provider(
    session_id: int,
    data: AssignProviderRequest,
    admin: User = Depends(require_admin),
    service: AdminAssignmentService = Depends(get_assignment_service),
):
    return to_session_response(service.assign_provider(session_id, data, admin))


@router.post("/{session_id}/reject", response_model=RejectAssignmentResponse)
async def reject_service_request(
    session_id: int,
    data: RejectAssignmentRequest,
    admin: User = Depends(require_admin),
    service: AdminAssignmentService = Depends(get_assignment_service),
):
    return service.reject_service_request(session_id, data, admin)
