"""Session service - Booking lifecycle business logic"""

import logging
import math
from contextlib import nullcontext
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...locks import provider_schedule_lock
from ...models import User
from ...models_session import ServiceSession
from ...shared.constants import (
    PaymentStatus,
    ServiceStatus,
    SessionStatus,
    UserRole,
)
from ...shared.timeutils import calculate_end_time, crosses_midnight
from ...shared.validators import validate_duration, validate_time_hhmm
from ..availability.service import AvailabilityService
from ..pricing.calculator import PricingResult
from ..pricing.service import SessionConfigService
from ..settlement.publisher import EarningsSettlement, settle_completed_session
from .repository import SessionRepository
from .schemas import ReviewCreate, ServiceRequestCreate, SessionCreate, SessionUpdate
from .state_machine import can_set_status, is_terminal, validate_status_transition

logger = logging.getLogger(__name__)

# Statuses that only make sense once a provider is attached
PROVIDER_REQUIRED_STATUSES = (
    SessionStatus.ASSIGNED.value,
    SessionStatus.CONFIRMED.value,
    SessionStatus.IN_PROGRESS.value,
    SessionStatus.COMPLETED.value,
)


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


def session_actor(session: ServiceSession, user: User) -> str:
    if is_admin(user):
        return "admin"
    if session.provider_id is not None and session.provider_id == user.id:
        return "provider"
    return "seeker"


def pricing_fields(pricing: PricingResult) -> dict:
    return {
        "base_duration": pricing.base_duration,
        "overtime_hours": pricing.overtime_hours,
        "base_price": pricing.base_price,
        "overtime_price": pricing.overtime_price,
        "total_amount": pricing.total_price,
    }


def pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


class SessionService:
    """
    Service layer for the session lifecycle.

    Every check-then-write on a provider's calendar runs under
    provider_schedule_lock. Settlement runs after the completing commit and
    never fails the request.
    """

    def __init__(
        self,
        db: Session,
        settlement: Optional[EarningsSettlement] = None,
        pricing: Optional[SessionConfigService] = None,
        availability: Optional[AvailabilityService] = None,
    ):
        self.db = db
        self.repo = SessionRepository()
        self.settlement = settlement or EarningsSettlement()
        self.pricing = pricing or SessionConfigService(db)
        self.availability = availability or AvailabilityService(db)

    # ========================================================================
    # SCHEDULING HELPERS
    # ========================================================================

    def check_session_conflict(
        self,
        provider_id: int,
        session_date: date,
        start_time: str,
        end_time: str,
        exclude_session_id: Optional[int] = None,
    ) -> bool:
        """True when the provider already holds an active session overlapping the range"""
        conflict = self.repo.find_conflicting_session(
            self.db, provider_id, session_date, start_time, end_time, exclude_session_id
        )
        return conflict is not None

    def ensure_provider_free(
        self,
        provider_id: int,
        session_date: date,
        start_time: str,
        end_time: str,
        exclude_session_id: Optional[int] = None,
    ) -> None:
        """Availability first, then conflicts. Raises 409 on either."""
        if not self.availability.is_available(provider_id, session_date, start_time, end_time):
            raise HTTPException(
                status_code=409, detail="Provider is not available at the requested time"
            )

        if self.check_session_conflict(
            provider_id, session_date, start_time, end_time, exclude_session_id
        ):
            raise HTTPException(
                status_code=409, detail="Provider already has a session at the requested time"
            )

    @staticmethod
    def schedule_window(start_time: str, duration_hours: float) -> tuple[str, str]:
        """Validate a start time and duration and return (start, end) as HH:mm"""
        try:
            start_time = validate_time_hhmm(start_time)
            validate_duration(duration_hours)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        if crosses_midnight(start_time, duration_hours):
            raise HTTPException(status_code=400, detail="Sessions cannot extend past midnight")

        return start_time, calculate_end_time(start_time, duration_hours)

    def get_session(self, session_id: int) -> ServiceSession:
        session = self.repo.get_by_id(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    # ========================================================================
    # BOOKING
    # ========================================================================

    def create_session(self, data: SessionCreate, seeker: User) -> ServiceSession:
        """Book a specific provider's service"""
        service = self.repo.get_service(self.db, data.serviceId)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        if not service.is_available or service.status != ServiceStatus.ACTIVE.value:
            raise HTTPException(
                status_code=409, detail="Service is currently not available for booking"
            )
        if service.provider_id is None:
            raise HTTPException(
                status_code=400,
                detail="This service has no provider yet, submit a service request instead",
            )

        start_time, end_time = self.schedule_window(data.startTime, data.duration)
        pricing = self.pricing.calculate_session_price(service.category, data.duration)

        # Admin mode: provider is fixed by the service but still has to confirm
        if config.REQUIRE_ADMIN_ASSIGNMENT:
            status = SessionStatus.ASSIGNED.value
        else:
            status = SessionStatus.PENDING.value

        with provider_schedule_lock(service.provider_id):
            self.ensure_provider_free(service.provider_id, data.sessionDate, start_time, end_time)

            session = self.repo.create(
                self.db,
                seeker_id=seeker.id,
                provider_id=service.provider_id,
                service_id=service.id,
                service_name=service.title,
                category=service.category,
                session_date=data.sessionDate,
                start_time=start_time,
                end_time=end_time,
                duration_hours=data.duration,
                currency=self.pricing.get_active_config().currency,
                status=status,
                payment_status=PaymentStatus.PENDING.value,
                service_location=service.location,
                notes=data.notes,
                **pricing_fields(pricing),
            )

        logger.info(
            f"📅 Session {session.id} booked by seeker {seeker.id} with provider "
            f"{service.provider_id} ({status}), total {session.total_amount} {session.currency}"
        )
        return session

    def create_service_request(self, data: ServiceRequestCreate, seeker: User) -> dict:
        """Create a provider-less session for an admin to assign"""
        category = data.category.value
        start_time, end_time = self.schedule_window(data.startTime, data.duration)
        pricing = self.pricing.calculate_session_price(category, data.duration)

        generic_service = self.repo.get_generic_service(self.db, category)
        if not generic_service:
            generic_service = self.repo.create_service(
                self.db,
                title=f"{category.capitalize()} Service",
                description=data.description or f"Professional {category} service",
                category=category,
                status=ServiceStatus.ACTIVE.value,
                is_available=True,
            )
            logger.info(f"🆕 Generic service created for category {category}")

        session = self.repo.create(
            self.db,
            seeker_id=seeker.id,
            provider_id=None,
            service_id=generic_service.id,
            service_name=generic_service.title,
            category=category,
            session_date=data.serviceDate,
            start_time=start_time,
            end_time=end_time,
            duration_hours=data.duration,
            currency=self.pricing.get_active_config().currency,
            status=SessionStatus.PENDING_ASSIGNMENT.value,
            payment_status=PaymentStatus.PENDING.value,
            service_location=data.province.value,
            service_address=data.location.address,
            service_latitude=data.location.latitude,
            service_longitude=data.location.longitude,
            notes=data.specialInstructions,
            **pricing_fields(pricing),
        )

        logger.info(f"📥 Service request {session.id} ({category}) submitted by seeker {seeker.id}")
        return {
            "message": "Service request submitted successfully. An admin will assign a provider to your request.",
            "requestId": session.id,
            "estimatedCost": pricing.total_price,
        }

    def get_service_request_status(self, request_id: int, user: User) -> ServiceSession:
        session = self.repo.get_by_id(self.db, request_id)
        if not session:
            raise HTTPException(status_code=404, detail="Service request not found")
        self._ensure_participant(session, user)
        return session

    # ========================================================================
    # READ SIDE
    # ========================================================================

    def find_one(self, session_id: int, user: User) -> ServiceSession:
        session = self.get_session(session_id)
        self._ensure_participant(session, user)
        return session

    def find_all(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        seeker_id: Optional[int] = None,
        provider_id: Optional[int] = None,
    ) -> dict:
        sessions, total = self.repo.list_sessions(
            self.db,
            skip=(page - 1) * limit,
            limit=limit,
            status=status,
            seeker_id=seeker_id,
            provider_id=provider_id,
        )
        return {"sessions": sessions, "pagination": pagination(total, page, limit)}

    def find_by_seeker(
        self, seeker_id: int, status: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> dict:
        sessions, total = self.repo.list_sessions(
            self.db, skip=(page - 1) * limit, limit=limit, seeker_id=seeker_id, status=status
        )
        return {
            "sessions": sessions,
            "pagination": pagination(total, page, limit),
            "summary": self.get_status_summary(seeker_id, UserRole.SEEKER.value),
        }

    def find_by_provider(
        self, provider_id: int, status: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> dict:
        sessions, total = self.repo.list_sessions(
            self.db, skip=(page - 1) * limit, limit=limit, provider_id=provider_id, status=status
        )
        return {
            "sessions": sessions,
            "pagination": pagination(total, page, limit),
            "summary": self.get_status_summary(provider_id, UserRole.PROVIDER.value),
        }

    def get_status_summary(self, user_id: int, role: str) -> dict:
        """Per-status counts for a user; providers also get earnings from completed sessions"""
        field = "provider_id" if role == UserRole.PROVIDER.value else "seeker_id"
        summary = {
            "pendingAssignment": 0,
            "pending": 0,
            "assigned": 0,
            "confirmed": 0,
            "inProgress": 0,
            "completed": 0,
            "cancelled": 0,
            "rejected": 0,
            "totalEarnings": 0,
        }
        keys = {
            SessionStatus.PENDING_ASSIGNMENT.value: "pendingAssignment",
            SessionStatus.PENDING.value: "pending",
            SessionStatus.ASSIGNED.value: "assigned",
            SessionStatus.CONFIRMED.value: "confirmed",
            SessionStatus.IN_PROGRESS.value: "inProgress",
            SessionStatus.COMPLETED.value: "completed",
            SessionStatus.CANCELLED.value: "cancelled",
            SessionStatus.REJECTED.value: "rejected",
        }

        for status, count, total_amount in self.repo.status_counts(self.db, **{field: user_id}):
            key = keys.get(status)
            if key:
                summary[key] = count
            if status == SessionStatus.COMPLETED.value and role == UserRole.PROVIDER.value:
                summary["totalEarnings"] += total_amount or 0

        return summary

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def update_session(self, session_id: int, data: SessionUpdate, user: User) -> ServiceSession:
        """
        Apply a patch to a session.

        Rescheduling recomputes the end time, rechecks the provider calendar
        excluding this session and reprices when the duration changes. A
        transition into completed claims the earnings settlement once, after the
        commit, and leaves the wallet call to a background task.
        """
        session = self.get_session(session_id)

        if not (
            session.seeker_id == user.id or session.provider_id == user.id or is_admin(user)
        ):
            raise HTTPException(
                status_code=403, detail="You do not have permission to update this session"
            )

        previous_status = session.status
        new_status = data.status.value if data.status else None
        status_changes = new_status is not None and new_status != previous_status

        if status_changes:
            if not validate_status_transition(previous_status, new_status):
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid status transition from {previous_status} to {new_status}",
                )
            if new_status in PROVIDER_REQUIRED_STATUSES and session.provider_id is None:
                raise HTTPException(status_code=400, detail="Session has no assigned provider")
            if not can_set_status(new_status, session_actor(session, user)):
                raise HTTPException(
                    status_code=403,
                    detail=f"You do not have permission to move this session to {new_status}",
                )

        rescheduling = any(
            value is not None for value in (data.sessionDate, data.startTime, data.duration)
        )
        if rescheduling and is_terminal(previous_status):
            raise HTTPException(
                status_code=400, detail=f"Cannot reschedule a {previous_status} session"
            )

        if data.paymentStatus:
            self._check_payment_status(session, data.paymentStatus.value, new_status or previous_status)

        lock = provider_schedule_lock(session.provider_id) if rescheduling else nullcontext()
        with lock:
            if rescheduling:
                self._reschedule(session, data)
            if status_changes:
                self._apply_status(session, new_status, user)
            if data.paymentStatus:
                session.payment_status = data.paymentStatus.value
            if data.notes is not None:
                session.notes = data.notes
            if data.cancellationReason is not None:
                session.cancellation_reason = data.cancellationReason

            self.repo.save(self.db, session)

        if status_changes:
            logger.info(
                f"🔄 Session {session.id} status {previous_status} -> {new_status} by user {user.id}"
            )
            if new_status == SessionStatus.COMPLETED.value:
                settle_completed_session(self.db, session, self.settlement)

        return session

    def cancel_session(self, session_id: int, user: User, reason: Optional[str] = None) -> ServiceSession:
        session = self.get_session(session_id)

        if user.id not in (session.seeker_id, session.provider_id):
            raise HTTPException(status_code=403, detail="You can only cancel your own sessions")

        if session.status == SessionStatus.COMPLETED.value:
            raise HTTPException(status_code=400, detail="Cannot cancel completed sessions")
        if is_terminal(session.status):
            raise HTTPException(status_code=400, detail=f"Session is already {session.status}")

        return self.update_session(
            session_id,
            SessionUpdate(status=SessionStatus.CANCELLED, cancellationReason=reason),
            user,
        )

    def confirm_assignment(self, session_id: int, user: User) -> ServiceSession:
        """Assigned provider (or an admin) accepts the session"""
        session = self._get_assigned_session(session_id, user)

        session.status = SessionStatus.CONFIRMED.value
        self.repo.save(self.db, session)
        logger.info(f"✅ Session {session.id} confirmed by user {user.id}")
        return session

    def decline_assignment(
        self, session_id: int, user: User, reason: Optional[str] = None
    ) -> ServiceSession:
        """Assigned provider (or an admin) turns the session down"""
        session = self._get_assigned_session(session_id, user)
        provider_id = session.provider_id

        if config.REASSIGN_ON_PROVIDER_DECLINE:
            session.status = SessionStatus.PENDING_ASSIGNMENT.value
            session.provider_id = None
            session.assigned_by = None
            session.assigned_at = None
            session.assignment_notes = reason
        else:
            session.status = SessionStatus.REJECTED.value
            session.rejection_reason = reason
            session.rejected_by = user.id
            session.rejected_at = datetime.utcnow()

        self.repo.save(self.db, session)
        logger.info(
            f"↩️ Session {session.id} declined by provider {provider_id}, now {session.status}"
        )
        return session

    def submit_review(self, session_id: int, user: User, data: ReviewCreate) -> ServiceSession:
        session = self.get_session(session_id)

        if session.status != SessionStatus.COMPLETED.value:
            raise HTTPException(status_code=400, detail="Only completed sessions can be reviewed")

        if user.id == session.seeker_id:
            if session.seeker_rating is not None:
                raise HTTPException(status_code=400, detail="You have already reviewed this session")
            session.seeker_rating = data.rating
            session.seeker_review = data.review

            provider = self.repo.get_user(self.db, session.provider_id)
            if provider:
                total = provider.total_reviews or 0
                average = provider.average_rating or 0
                provider.average_rating = round((average * total + data.rating) / (total + 1), 2)
                provider.total_reviews = total + 1
        elif user.id == session.provider_id:
            if session.provider_rating is not None:
                raise HTTPException(status_code=400, detail="You have already reviewed this session")
            session.provider_rating = data.rating
            session.provider_review = data.review
        else:
            raise HTTPException(
                status_code=403, detail="Only session participants can review a session"
            )

        self.repo.save(self.db, session)
        logger.info(f"⭐ Session {session.id} reviewed by user {user.id}: {data.rating}")
        return session

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _ensure_participant(self, session: ServiceSession, user: User) -> None:
        if is_admin(user) or user.id in (session.seeker_id, session.provider_id):
            return
        raise HTTPException(status_code=403, detail="You do not have access to this session")

    def _get_assigned_session(self, session_id: int, user: User) -> ServiceSession:
        session = self.get_session(session_id)

        if session.provider_id != user.id and not is_admin(user):
            raise HTTPException(
                status_code=403, detail="Only the assigned provider can respond to this assignment"
            )
        if session.status != SessionStatus.ASSIGNED.value:
            raise HTTPException(
                status_code=400, detail=f"Session is {session.status}, not awaiting confirmation"
            )
        return session

    def _reschedule(self, session: ServiceSession, data: SessionUpdate) -> None:
        session_date = data.sessionDate or session.session_date
        duration = data.duration if data.duration is not None else session.duration_hours
        start_time, end_time = self.schedule_window(data.startTime or session.start_time, duration)

        if session.provider_id is not None:
            self.ensure_provider_free(
                session.provider_id, session_date, start_time, end_time, exclude_session_id=session.id
            )

        if duration != session.duration_hours:
            pricing = self.pricing.calculate_session_price(session.category, duration)
            for key, value in pricing_fields(pricing).items():
                setattr(session, key, value)
            session.duration_hours = duration

        session.session_date = session_date
        session.start_time = start_time
        session.end_time = end_time
        logger.info(f"🗓️ Session {session.id} rescheduled to {session_date} {start_time}-{end_time}")

    def _apply_status(self, session: ServiceSession, new_status: str, user: User) -> None:
        now = datetime.utcnow()
        session.status = new_status

        if new_status == SessionStatus.CANCELLED.value:
            session.cancelled_by = user.id
            session.cancelled_at = now
        elif new_status == SessionStatus.REJECTED.value:
            session.rejected_by = user.id
            session.rejected_at = now
        elif new_status == SessionStatus.PENDING_ASSIGNMENT.value:
            # Back to the admin queue
            session.provider_id = None
            session.assigned_by = None
            session.assigned_at = None

    @staticmethod
    def _check_payment_status(session: ServiceSession, payment_status: str, status: str) -> None:
        if payment_status == PaymentStatus.PAID.value and status in (
            SessionStatus.CANCELLED.value,
            SessionStatus.REJECTED.value,
        ):
            raise HTTPException(
                status_code=400, detail=f"Cannot mark a {status} session as paid"
            )
        if (
            payment_status == PaymentStatus.REFUNDED.value
            and session.payment_status != PaymentStatus.PAID.value
        ):
            raise HTTPException(status_code=400, detail="Only paid sessions can be refunded")
