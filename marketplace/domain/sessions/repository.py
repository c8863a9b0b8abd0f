"""Session repository - Database operations for sessions"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Service, User
from ...models_session import ServiceSession
from ...shared.constants import ACTIVE_SESSION_STATUSES, ProviderStatus, UserRole


class SessionRepository:
    """Repository for session database operations"""

    @staticmethod
    def get_by_id(db: Session, session_id: int) -> Optional[ServiceSession]:
        return db.query(ServiceSession).filter(ServiceSession.id == session_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_generic_service(db: Session, category: str) -> Optional[Service]:
        """Get the provider-less template service for a category"""
        return (
            db.query(Service)
            .filter(Service.category == category, Service.provider_id.is_(None))
            .order_by(Service.id)
            .first()
        )

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create(db: Session, **session_data) -> ServiceSession:
        session = ServiceSession(**session_data)
        db.add(session)
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def save(db: Session, session: ServiceSession) -> ServiceSession:
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def find_conflicting_session(
        db: Session,
        provider_id: int,
        session_date: date,
        start_time: str,
        end_time: str,
        exclude_session_id: Optional[int] = None,
    ) -> Optional[ServiceSession]:
        """First active session of the provider overlapping [start_time, end_time)"""
        query = db.query(ServiceSession).filter(
            ServiceSession.provider_id == provider_id,
            ServiceSession.session_date == session_date,
            ServiceSession.status.in_(ACTIVE_SESSION_STATUSES),
            ServiceSession.start_time < end_time,
            ServiceSession.end_time > start_time,
        )

        if exclude_session_id is not None:
            query = query.filter(ServiceSession.id != exclude_session_id)

        return query.first()

    @staticmethod
    def list_sessions(
        db: Session,
        skip: int = 0,
        limit: int = 20,
        oldest_first: bool = False,
        **filters,
    ) -> tuple[list[ServiceSession], int]:
        """Filter by column equality, returning one page and the total count"""
        query = db.query(ServiceSession)
        for key, value in filters.items():
            if value is not None:
                query = query.filter(getattr(ServiceSession, key) == value)

        total = query.count()
        if oldest_first:
            order = (ServiceSession.created_at.asc(), ServiceSession.id.asc())
        else:
            order = (ServiceSession.created_at.desc(), ServiceSession.id.desc())
        sessions = query.order_by(*order).offset(skip).limit(limit).all()
        return sessions, total

    @staticmethod
    def status_counts(db: Session, **filters) -> list[tuple[str, int, float]]:
        """Rows of (status, count, summed total_amount) grouped by status"""
        query = db.query(
            ServiceSession.status,
            func.count(ServiceSession.id),
            func.coalesce(func.sum(ServiceSession.total_amount), 0),
        )
        for key, value in filters.items():
            query = query.filter(getattr(ServiceSession, key) == value)

        return query.group_by(ServiceSession.status).all()

    @staticmethod
    def find_candidate_providers(
        db: Session,
        min_rating: Optional[float] = None,
        experience_level: Optional[str] = None,
    ) -> list[User]:
        """Active providers; category and area membership is checked by the caller"""
        query = db.query(User).filter(
            User.role == UserRole.PROVIDER.value,
            User.is_active.is_(True),
            User.provider_status == ProviderStatus.ACTIVE.value,
        )
        if min_rating is not None:
            query = query.filter(User.average_rating >= min_rating)
        if experience_level:
            query = query.filter(User.experience_level == experience_level)

        return query.order_by(User.id).all()
