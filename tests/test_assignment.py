import pytest
from fastapi import HTTPException

from conftest import (
    SERVICE_LAT,
    SERVICE_LNG,
    add_availability,
    make_provider,
    make_session,
    make_user,
)
from marketplace import config
from marketplace.domain.assignment.schemas import (
    AssignProviderRequest,
    ProviderFilters,
    RejectAssignmentRequest,
)
from marketplace.domain.assignment.service import AdminAssignmentService
from marketplace.domain.sessions.service import SessionService


@pytest.fixture
def seeker(db):
    return make_user(db, role="seeker")


@pytest.fixture
def admin(db):
    return make_user(db, role="admin")


@pytest.fixture
def assignments(db, settlement):
    return AdminAssignmentService(db, SessionService(db, settlement=settlement))


def available_provider(db, **fields):
    provider = make_provider(db, **fields)
    add_availability(db, provider, "monday", slots=[("08:00", "18:00")])
    return provider


def service_request(db, seeker, **fields):
    return make_session(
        db,
        seeker,
        None,
        status="pending_assignment",
        service_latitude=SERVICE_LAT,
        service_longitude=SERVICE_LNG,
        **fields,
    )


def test_assignment_auto_confirms(db, seeker, admin, assignments):
    provider = available_provider(db)
    request = service_request(db, seeker)

    session = assignments.assign_provider(
        request.id, AssignProviderRequest(providerId=provider.id, notes="Closest"), admin
    )

    assert session.status == "confirmed"
    assert session.provider_id == provider.id
    assert session.assigned_by == admin.id
    assert session.assigned_at is not None
    assert session.assignment_notes == "Closest"


def test_assignment_waits_for_provider_without_auto_confirm(
    db, seeker, admin, assignments, monkeypatch
):
    monkeypatch.setattr(config, "AUTO_CONFIRM_ASSIGNMENT", False)
    provider = available_provider(db)
    request = service_request(db, seeker)

    session = assignments.assign_provider(request.id, AssignProviderRequest(providerId=provider.id), admin)

    assert session.status == "assigned"
    confirmed = assignments.sessions.confirm_assignment(session.id, provider)
    assert confirmed.status == "confirmed"


def test_provider_must_offer_category(db, seeker, admin, assignments):
    provider = available_provider(db, categories=["plumbing"])
    request = service_request(db, seeker)

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=provider.id), admin)
    assert exc.value.status_code == 400


def test_provider_must_serve_area(db, seeker, admin, assignments):
    provider = available_provider(db, areas=["Littoral"])
    request = service_request(db, seeker)

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=provider.id), admin)
    assert exc.value.status_code == 400


def test_inactive_or_unknown_provider_is_rejected(db, seeker, admin, assignments):
    suspended = available_provider(db, provider_status="suspended")
    request = service_request(db, seeker)

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=suspended.id), admin)
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=seeker.id), admin)
    assert exc.value.status_code == 404


def test_assignment_respects_provider_calendar(db, seeker, admin, assignments):
    provider = available_provider(db)
    make_session(db, seeker, provider, status="confirmed", start_time="10:00", duration=2)
    request = service_request(db, seeker, start_time="11:00", duration=2)

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=provider.id), admin)
    assert exc.value.status_code == 409

    db.refresh(request)
    assert request.status == "pending_assignment"
    assert request.provider_id is None


def test_assignment_outside_availability_is_rejected(db, seeker, admin, assignments):
    provider = available_provider(db)
    request = service_request(db, seeker, start_time="17:00", duration=2)

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=provider.id), admin)
    assert exc.value.status_code == 409


def test_assigned_request_cannot_be_assigned_again(db, seeker, admin, assignments):
    first = available_provider(db)
    second = available_provider(db)
    request = service_request(db, seeker)
    assignments.assign_provider(request.id, AssignProviderRequest(providerId=first.id), admin)

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=second.id), admin)
    assert exc.value.status_code == 400


def test_rejected_request_cannot_be_assigned(db, seeker, admin, assignments):
    provider = available_provider(db)
    request = service_request(db, seeker)

    result = assignments.reject_service_request(
        request.id, RejectAssignmentRequest(reason="No providers in area"), admin
    )
    assert result["status"] == "rejected"
    assert result["rejectedBy"] == admin.id

    with pytest.raises(HTTPException) as exc:
        assignments.assign_provider(request.id, AssignProviderRequest(providerId=provider.id), admin)
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        assignments.reject_service_request(request.id, RejectAssignmentRequest(reason="again"), admin)
    assert exc.value.status_code == 400


def test_declined_request_can_be_reassigned(db, seeker, admin, assignments, monkeypatch):
    monkeypatch.setattr(config, "AUTO_CONFIRM_ASSIGNMENT", False)
    first = available_provider(db)
    second = available_provider(db)
    request = service_request(db, seeker)

    assignments.assign_provider(request.id, AssignProviderRequest(providerId=first.id), admin)
    assignments.sessions.decline_assignment(request.id, first, "Sick")
    session = assignments.assign_provider(request.id, AssignProviderRequest(providerId=second.id), admin)

    assert session.provider_id == second.id
    assert session.status == "assigned"


def test_available_providers_sorted_by_rating_then_distance(db, seeker, assignments):
    far = available_provider(db, rating=4.5, current_latitude=4.05, current_longitude=9.70)
    near = available_provider(db, rating=4.5, current_latitude=3.85, current_longitude=11.50)
    unknown = available_provider(db, rating=4.5)
    best = available_provider(db, rating=4.9)
    available_provider(db, categories=["plumbing"])
    busy = available_provider(db, rating=5.0)
    make_session(db, seeker, busy, status="confirmed", start_time="09:00", duration=2)
    off_today = make_provider(db, rating=5.0)
    add_availability(db, off_today, "tuesday")
    request = service_request(db, seeker)

    result = assignments.find_available_providers(request.id, ProviderFilters())

    assert [p["id"] for p in result["providers"]] == [best.id, near.id, far.id, unknown.id]
    assert result["totalFound"] == 4
    assert result["providers"][1]["distance"] < 1
    assert result["providers"][3]["distance"] is None


def test_available_providers_min_rating_filter(db, seeker, assignments):
    available_provider(db, rating=3.0)
    good = available_provider(db, rating=4.8)
    request = service_request(db, seeker)

    result = assignments.find_available_providers(request.id, ProviderFilters(minRating=4.5))

    assert [p["id"] for p in result["providers"]] == [good.id]


def test_pending_queue_is_oldest_first(db, seeker, assignments):
    first = service_request(db, seeker)
    second = service_request(db, seeker, start_time="13:00")
    make_session(db, seeker, make_provider(db), status="confirmed")

    result = assignments.get_pending_assignments()

    assert [s.id for s in result["sessions"]] == [first.id, second.id]
    assert result["pagination"]["total"] == 2


def test_assignment_stats(db, seeker, assignments):
    service_request(db, seeker)
    service_request(db, seeker, start_time="13:00")
    make_session(db, seeker, make_provider(db), status="completed")

    stats = assignments.get_assignment_stats()

    assert stats["pendingAssignment"] == 2
    assert stats["completed"] == 1
    assert stats["rejected"] == 0


def test_assignment_endpoints_are_admin_only(client, db, auth, seeker):
    provider = available_provider(db)
    request = service_request(db, seeker)

    auth.user = seeker
    response = client.post(f"/admin/assignments/{request.id}/assign", json={"providerId": provider.id})
    assert response.status_code == 403

    auth.user = make_user(db, role="admin")
    response = client.get(f"/admin/assignments/{request.id}/available-providers")
    assert response.status_code == 200
    assert response.json()["totalFound"] == 1

    response = client.post(f"/admin/assignments/{request.id}/assign", json={"providerId": provider.id})
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    assert client.get("/admin/assignments/stats").json()["confirmed"] == 1
