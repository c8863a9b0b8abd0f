import os

# Must be set before the marketplace package reads its configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("FIREBASE_PROJECT_ID", "marketplace-test")
os.environ["SCHEDULE_LOCK_BACKEND"] = "memory"
os.environ.pop("WALLET_SERVICE_URL", None)

import asyncio  # noqa: E402
from datetime import date  # noqa: E402
from itertools import count  # noqa: E402

import pytest  # noqa: E402
from fastapi import BackgroundTasks  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from marketplace import config  # noqa: E402
from marketplace.auth import get_current_user  # noqa: E402
from marketplace.database import Base, get_db  # noqa: E402
from marketplace.domain.pricing.calculator import price_for  # noqa: E402
from marketplace.domain.pricing.service import SessionConfigService  # noqa: E402
from marketplace.domain.settlement.publisher import (  # noqa: E402
    EarningsSettlement,
    get_earnings_settlement,
)
from marketplace.main import app  # noqa: E402
from marketplace.models import Service, User  # noqa: E402
from marketplace.models_session import Availability, ServiceSession  # noqa: E402
from marketplace.shared.timeutils import calculate_end_time  # noqa: E402

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 6)

# Yaounde city centre
SERVICE_LAT = 3.848
SERVICE_LNG = 11.502

_ids = count(1)


class FakeWallet:
    """Records earnings instead of calling the wallet service"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def process_earning(self, provider_id, session_id, amount, currency):
        if self.fail:
            raise RuntimeError("wallet service unavailable")
        self.calls.append(
            {
                "provider_id": provider_id,
                "session_id": session_id,
                "amount": amount,
                "currency": currency,
            }
        )
        return {"status": "credited"}


class AuthState:
    user = None


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def settlement(wallet):
    return EarningsSettlement(wallet=wallet)


@pytest.fixture(autouse=True)
def admin_mode(monkeypatch):
    monkeypatch.setattr(config, "REQUIRE_ADMIN_ASSIGNMENT", True)
    monkeypatch.setattr(config, "AUTO_CONFIRM_ASSIGNMENT", True)
    monkeypatch.setattr(config, "REASSIGN_ON_PROVIDER_DECLINE", True)


@pytest.fixture
def auth():
    return AuthState()


@pytest.fixture
def client(db, wallet, auth):
    def request_settlement(background_tasks: BackgroundTasks):
        return EarningsSettlement(wallet=wallet, background_tasks=background_tasks)

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: auth.user
    app.dependency_overrides[get_earnings_settlement] = request_settlement
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, role="seeker", **fields) -> User:
    n = next(_ids)
    user = User(
        firebase_uid=f"uid-{n}",
        email=f"user{n}@example.com",
        full_name=fields.pop("full_name", f"User {n}"),
        role=role,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_provider(db, categories=("cleaning",), areas=("Centre",), rating=4.0, **fields) -> User:
    return make_user(
        db,
        role="provider",
        provider_status=fields.pop("provider_status", "active"),
        service_categories=list(categories),
        service_areas=list(areas),
        average_rating=rating,
        **fields,
    )


def make_service(db, provider=None, category="cleaning", location="Centre", **fields) -> Service:
    service = Service(
        title=fields.pop("title", "Home Cleaning"),
        description="Full house cleaning",
        category=category,
        location=location,
        provider_id=provider.id if provider else None,
        status=fields.pop("status", "active"),
        is_available=fields.pop("is_available", True),
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def add_availability(db, provider, day="monday", slots=(("08:00", "18:00"),), is_active=True) -> Availability:
    availability = Availability(
        provider_id=provider.id,
        day_of_week=day,
        time_slots=[{"startTime": s, "endTime": e, "isAvailable": True} for s, e in slots],
        is_active=is_active,
    )
    db.add(availability)
    db.commit()
    db.refresh(availability)
    return availability


def make_session(
    db,
    seeker,
    provider=None,
    status="confirmed",
    session_date=MONDAY,
    start_time="09:00",
    duration=2,
    category="cleaning",
    service=None,
    **fields,
) -> ServiceSession:
    service = service or make_service(db, provider, category=category)
    rule = SessionConfigService(db).get_category_pricing(category)
    pricing = price_for(rule, duration)
    session = ServiceSession(
        seeker_id=seeker.id,
        provider_id=provider.id if provider else None,
        service_id=service.id,
        service_name=service.title,
        category=category,
        session_date=session_date,
        start_time=start_time,
        end_time=calculate_end_time(start_time, duration),
        duration_hours=duration,
        base_duration=pricing.base_duration,
        overtime_hours=pricing.overtime_hours,
        base_price=pricing.base_price,
        overtime_price=pricing.overtime_price,
        total_amount=pricing.total_price,
        currency="FCFA",
        status=status,
        payment_status=fields.pop("payment_status", "pending"),
        service_location=fields.pop("service_location", "Centre"),
        **fields,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def run_settlements(settlement: EarningsSettlement) -> None:
    """Run the wallet deliveries queued on a settlement, as the response would"""
    tasks = settlement.background_tasks
    asyncio.run(tasks())
    tasks.tasks.clear()
