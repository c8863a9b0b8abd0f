"""Admin assignment service - Matching service requests to providers"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...locks import provider_schedule_lock
from ...models import User
from ...models_session import ServiceSession
from ...shared.constants import ProviderStatus, SessionStatus, UserRole
from ...shared.geo import haversine_distance
from ..sessions.repository import SessionRepository
from ..sessions.service import SessionService, pagination
from .schemas import AssignProviderRequest, ProviderFilters, RejectAssignmentRequest

logger = logging.getLogger(__name__)

_STAT_KEYS = {
    SessionStatus.PENDING_ASSIGNMENT.value: "pendingAssignment",
    SessionStatus.PENDING.value: "pending",
    SessionStatus.ASSIGNED.value: "assigned",
    SessionStatus.CONFIRMED.value: "confirmed",
    SessionStatus.IN_PROGRESS.value: "inProgress",
    SessionStatus.COMPLETED.value: "completed",
    SessionStatus.CANCELLED.value: "cancelled",
    SessionStatus.REJECTED.value: "rejected",
}


def provider_distance_km(session: ServiceSession, provider: User):
    if None in (
        session.service_latitude,
        session.service_longitude,
        provider.current_latitude,
        provider.current_longitude,
    ):
        return None

    meters = haversine_distance(
        session.service_latitude,
        session.service_longitude,
        provider.current_latitude,
        provider.current_longitude,
    )
    return round(meters / 1000, 2)


class AdminAssignmentService:
    """Service layer for admin-mediated provider assignment"""

    def __init__(self, db: Session, sessions: Optional[SessionService] = None):
        self.db = db
        self.repo = SessionRepository()
        self.sessions = sessions or SessionService(db)

    def get_pending_assignments(self, page: int = 1, limit: int = 20) -> dict:
        """Requests awaiting a provider, oldest first"""
        sessions, total = self.repo.list_sessions(
            self.db,
            skip=(page - 1) * limit,
            limit=limit,
            oldest_first=True,
            status=SessionStatus.PENDING_ASSIGNMENT.value,
        )
        return {"sessions": sessions, "pagination": pagination(total, page, limit)}

    def find_available_providers(self, session_id: int, filters: ProviderFilters) -> dict:
        """
        Providers who offer the category, serve the province, are available
        for the slot and have no overlapping session.

        Sorted by rating (highest first), then by distance to the service
        location (closest first, unknown last).
        """
        session = self._get_pending_session(session_id)

        category = filters.category.value if filters.category else session.category
        province = filters.location.value if filters.location else session.service_location

        candidates = self.repo.find_candidate_providers(
            self.db, min_rating=filters.minRating, experience_level=filters.experienceLevel
        )

        providers = []
        for provider in candidates:
            if category not in (provider.service_categories or []):
                continue
            if province and province not in (provider.service_areas or []):
                continue
            if not self.sessions.availability.is_available(
                provider.id, session.session_date, session.start_time, session.end_time
            ):
                continue
            if self.sessions.check_session_conflict(
                provider.id, session.session_date, session.start_time, session.end_time
            ):
                continue

            providers.append(
                {
                    "id": provider.id,
                    "fullName": provider.full_name,
                    "email": provider.email,
                    "phoneNumber": provider.phone_number,
                    "averageRating": provider.average_rating or 0,
                    "totalReviews": provider.total_reviews or 0,
                    "experienceLevel": provider.experience_level,
                    "bio": provider.bio,
                    "serviceCategories": provider.service_categories or [],
                    "distance": provider_distance_km(session, provider),
                    "lastActive": provider.last_location_update,
                }
            )

        providers.sort(
            key=lambda p: (
                -p["averageRating"],
                p["distance"] if p["distance"] is not None else float("inf"),
            )
        )

        return {
            "session": {
                "id": session.id,
                "serviceName": session.service_name,
                "category": session.category,
                "sessionDate": session.session_date,
                "startTime": session.start_time,
                "endTime": session.end_time,
                "serviceLocation": session.service_location,
                "seekerId": session.seeker_id,
            },
            "providers": providers,
            "totalFound": len(providers),
        }

    def assign_provider(
        self, session_id: int, data: AssignProviderRequest, admin: User
    ) -> ServiceSession:
        session = self._get_pending_session(session_id)

        provider = self.repo.get_user(self.db, data.providerId)
        if not provider or provider.role != UserRole.PROVIDER.value:
            raise HTTPException(status_code=404, detail="Provider not found")

        if not provider.is_active or provider.provider_status != ProviderStatus.ACTIVE.value:
            raise HTTPException(status_code=400, detail="Provider is not active")

        if session.category not in (provider.service_categories or []):
            raise HTTPException(
                status_code=400, detail="Provider does not offer this service category"
            )

        if session.service_location and session.service_location not in (
            provider.service_areas or []
        ):
            raise HTTPException(status_code=400, detail="Provider does not serve this service area")

        with provider_schedule_lock(provider.id):
            # Another admin may have handled it while we waited for the lock
            self.db.refresh(session)
            if (
                session.status != SessionStatus.PENDING_ASSIGNMENT.value
                or session.provider_id is not None
            ):
                raise HTTPException(status_code=400, detail="Session is not pending assignment")

            self.sessions.ensure_provider_free(
                provider.id, session.session_date, session.start_time, session.end_time
            )

            if config.AUTO_CONFIRM_ASSIGNMENT:
                session.status = SessionStatus.CONFIRMED.value
            else:
                session.status = SessionStatus.ASSIGNED.value
            session.provider_id = provider.id
            session.assigned_by = admin.id
            session.assigned_at = datetime.utcnow()
            session.assignment_notes = data.notes
            self.repo.save(self.db, session)

        logger.info(
            f"👷 Admin {admin.id} assigned provider {provider.id} to session {session.id} ({session.status})"
        )
        return session

    def reject_service_request(
        self, session_id: int, data: RejectAssignmentRequest, admin: User
    ) -> dict:
        session = self.sessions.get_session(session_id)

        if session.status != SessionStatus.PENDING_ASSIGNMENT.value:
            raise HTTPException(
                status_code=400,
                detail="Session is not pending assignment. Cannot reject sessions that are already assigned or processed.",
            )

        session.status = SessionStatus.REJECTED.value
        session.rejection_reason = data.reason
        session.rejected_by = admin.id
        session.rejected_at = datetime.utcnow()
        session.assignment_notes = data.adminNotes
        self.repo.save(self.db, session)

        logger.info(f"🚫 Admin {admin.id} rejected service request {session.id}: {data.reason}")
        return {
            "message": "Service request rejected successfully",
            "sessionId": session.id,
            "status": session.status,
            "rejectionReason": session.rejection_reason,
            "adminNotes": session.assignment_notes,
            "rejectedAt": session.rejected_at,
            "rejectedBy": admin.id,
        }

    def get_assignment_stats(self) -> dict:
        stats = dict.fromkeys(_STAT_KEYS.values(), 0)
        for status, count, _total in self.repo.status_counts(self.db):
            key = _STAT_KEYS.get(status)
            if key:
                stats[key] = count
        return stats

    def _get_pending_session(self, session_id: int) -> ServiceSession:
        session = self.sessions.get_session(session_id)
        if session.status != SessionStatus.PENDING_ASSIGNMENT.value or session.provider_id is not None:
            raise HTTPException(status_code=400, detail="Session is not pending assignment")
        return session
