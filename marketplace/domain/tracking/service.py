"""Location tracking service - Provider travel and on-site progress for a session"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...locks import provider_schedule_lock
from ...models import User
from ...models_session import ServiceSession
from ...models_tracking import LocationTracking
from ...shared.constants import LocationStatus, SessionStatus, UserRole
from ...shared.geo import haversine_distance
from ..sessions.repository import SessionRepository
from ..sessions.service import is_admin
from ..sessions.state_machine import validate_status_transition
from ..settlement.publisher import EarningsSettlement, settle_completed_session
from .proximity import ProximityPolicy, TrackingEvent, estimate_arrival
from .repository import TrackingRepository
from .schemas import LocationUpdateRequest, StartTrackingRequest

logger = logging.getLogger(__name__)

TRACKABLE_SESSION_STATUSES = (SessionStatus.CONFIRMED.value, SessionStatus.IN_PROGRESS.value)


class LocationTrackingService:
    """
    Service layer for live location tracking.

    At most one active tracking record exists per session. Completing the
    service through tracking is what completes the session in the tracked
    flow, so it claims and queues earnings the same way update_session does.
    """

    def __init__(
        self,
        db: Session,
        settlement: Optional[EarningsSettlement] = None,
        policy: Optional[ProximityPolicy] = None,
    ):
        self.db = db
        self.repo = TrackingRepository()
        self.sessions = SessionRepository()
        self.settlement = settlement or EarningsSettlement()
        self.policy = policy or ProximityPolicy()

    def start_tracking(
        self, session_id: int, data: StartTrackingRequest, user: User
    ) -> LocationTracking:
        session = self._get_session(session_id)

        is_assigned_provider = (
            user.role == UserRole.PROVIDER.value and session.provider_id == user.id
        )
        if not (is_assigned_provider or is_admin(user)):
            raise HTTPException(
                status_code=403, detail="Only assigned provider or admin can start tracking"
            )

        if session.status not in TRACKABLE_SESSION_STATUSES:
            raise HTTPException(
                status_code=400, detail="Can only track confirmed or in-progress sessions"
            )

        service_latitude = (
            data.serviceLatitude if data.serviceLatitude is not None else session.service_latitude
        )
        service_longitude = (
            data.serviceLongitude
            if data.serviceLongitude is not None
            else session.service_longitude
        )
        if service_latitude is None or service_longitude is None:
            raise HTTPException(status_code=400, detail="Service location is required")

        with provider_schedule_lock(session.provider_id):
            if self.repo.get_active(self.db, session.id):
                raise HTTPException(
                    status_code=409, detail="Location tracking already active for this session"
                )

            distance = haversine_distance(
                data.providerLatitude, data.providerLongitude, service_latitude, service_longitude
            )
            tracking = self.repo.create(
                self.db,
                session_id=session.id,
                provider_id=session.provider_id,
                seeker_id=session.seeker_id,
                current_latitude=data.providerLatitude,
                current_longitude=data.providerLongitude,
                service_latitude=service_latitude,
                service_longitude=service_longitude,
                status=LocationStatus.ON_ROUTE.value,
                distance_to_destination=distance,
                is_active=True,
            )

            if session.status == SessionStatus.CONFIRMED.value:
                session.status = SessionStatus.IN_PROGRESS.value
                logger.info(f"🔄 Session {session.id} status confirmed -> in_progress (tracking started)")

            self._record_provider_position(
                session.provider_id, data.providerLatitude, data.providerLongitude
            )
            self.repo.save(self.db, tracking)

        logger.info(f"📍 Tracking started for session {session.id}, {distance:.0f}m to destination")
        return tracking

    def update_location(
        self, session_id: int, data: LocationUpdateRequest, user: User
    ) -> LocationTracking:
        tracking = self.repo.get_active(self.db, session_id)
        if not tracking:
            raise HTTPException(
                status_code=404, detail="Active location tracking not found for this session"
            )
        self._ensure_tracking_provider(tracking, user, "update location")

        distance = haversine_distance(
            data.latitude, data.longitude, tracking.service_latitude, tracking.service_longitude
        )
        tracking.current_latitude = data.latitude
        tracking.current_longitude = data.longitude
        tracking.accuracy = data.accuracy
        tracking.speed = data.speed
        tracking.distance_to_destination = distance
        tracking.estimated_arrival_time = estimate_arrival(distance, data.speed)
        self._record_provider_position(tracking.provider_id, data.latitude, data.longitude)
        self.repo.save(self.db, tracking)

        if self.policy.evaluate(distance, tracking.status) == TrackingEvent.ARRIVED:
            logger.info(f"📍 Provider within {self.policy.arrival_radius_meters}m of session {session_id}")
            self._apply_arrival(tracking)

        return tracking

    def mark_arrived(self, session_id: int, user: User) -> LocationTracking:
        tracking = self._get_active_tracking(session_id)
        self._ensure_tracking_provider(tracking, user, "mark arrival")
        return self._apply_arrival(tracking)

    def mark_service_started(self, session_id: int, user: User) -> LocationTracking:
        """Stamp the start time; the tracking status itself does not change"""
        tracking = self._get_active_tracking(session_id)
        self._ensure_tracking_provider(tracking, user, "start service")

        tracking.service_started_at = datetime.utcnow()
        self.repo.save(self.db, tracking)
        logger.info(f"🧹 Service started for session {session_id}")
        return tracking

    def complete_service(self, session_id: int, user: User) -> LocationTracking:
        """Close tracking and complete the session, then settle earnings"""
        tracking = self._get_active_tracking(session_id)
        self._ensure_tracking_provider(tracking, user, "complete service")

        session = self._get_session(session_id)
        previous_status = session.status
        if not validate_status_transition(previous_status, SessionStatus.COMPLETED.value):
            raise HTTPException(
                status_code=400, detail=f"Cannot complete a session that is {previous_status}"
            )

        now = datetime.utcnow()
        tracking.status = LocationStatus.SERVICE_COMPLETE.value
        tracking.service_completed_at = now
        tracking.is_active = False
        session.status = SessionStatus.COMPLETED.value
        self.repo.save(self.db, tracking)
        self.db.refresh(session)

        logger.info(f"✅ Session {session.id} completed through tracking by user {user.id}")
        if previous_status != SessionStatus.COMPLETED.value:
            settle_completed_session(self.db, session, self.settlement)

        return tracking

    def stop_tracking(self, session_id: int, user: User) -> dict:
        """Deactivate tracking without touching the session status"""
        tracking = self.repo.get_active(self.db, session_id)
        if not tracking:
            raise HTTPException(status_code=404, detail="No active tracking found")

        if not (is_admin(user) or user.id in (tracking.provider_id, tracking.seeker_id)):
            raise HTTPException(status_code=403, detail="Unauthorized to stop tracking")

        tracking.is_active = False
        self.repo.save(self.db, tracking)
        logger.info(f"🛑 Tracking stopped for session {session_id} by user {user.id}")
        return {"message": "Location tracking stopped"}

    def get_seeker_tracking(self, session_id: int, user: User) -> dict:
        session = self._get_session(session_id)

        if session.seeker_id != user.id and not is_admin(user):
            raise HTTPException(
                status_code=403, detail="Can only view tracking for your own sessions"
            )

        tracking = self.repo.get_active(self.db, session_id)
        if not tracking:
            return {
                "sessionId": session_id,
                "trackingActive": False,
                "message": "Location tracking not started yet",
            }

        provider = tracking.provider
        return {
            "sessionId": session_id,
            "trackingActive": tracking.is_active,
            "providerId": tracking.provider_id,
            "providerName": provider.full_name if provider else None,
            "providerPhone": provider.phone_number if provider else None,
            "status": tracking.status,
            "providerLocation": {
                "latitude": tracking.current_latitude,
                "longitude": tracking.current_longitude,
            },
            "distanceToDestination": tracking.distance_to_destination,
            "estimatedArrivalTime": tracking.estimated_arrival_time,
            "arrivedAt": tracking.arrived_at,
            "serviceStartedAt": tracking.service_started_at,
        }

    def get_provider_tracking(self, session_id: int, user: User) -> LocationTracking:
        tracking = self.repo.get_active_for_provider(self.db, session_id, user.id)
        if not tracking:
            raise HTTPException(status_code=404, detail="No active tracking found for this session")
        return tracking

    def _apply_arrival(self, tracking: LocationTracking) -> LocationTracking:
        # on_route -> at_location only; later states are never rolled back
        if tracking.status != LocationStatus.ON_ROUTE.value:
            return tracking

        tracking.status = LocationStatus.AT_LOCATION.value
        tracking.arrived_at = datetime.utcnow()
        tracking.estimated_arrival_time = None
        self.repo.save(self.db, tracking)
        logger.info(f"🏁 Provider {tracking.provider_id} arrived for session {tracking.session_id}")
        return tracking

    def _get_session(self, session_id: int) -> ServiceSession:
        session = self.sessions.get_by_id(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    def _get_active_tracking(self, session_id: int) -> LocationTracking:
        tracking = self.repo.get_active(self.db, session_id)
        if not tracking:
            raise HTTPException(status_code=404, detail="Active location tracking not found")
        return tracking

    def _record_provider_position(self, provider_id: int, latitude: float, longitude: float) -> None:
        provider = self.sessions.get_user(self.db, provider_id)
        if provider:
            provider.current_latitude = latitude
            provider.current_longitude = longitude
            provider.last_location_update = datetime.utcnow()

    @staticmethod
    def _ensure_tracking_provider(tracking: LocationTracking, user: User, action: str) -> None:
        if tracking.provider_id != user.id and not is_admin(user):
            raise HTTPException(status_code=403, detail=f"Only assigned provider can {action}")
