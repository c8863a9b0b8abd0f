from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from conftest import SERVICE_LAT, SERVICE_LNG, make_provider, make_session, make_user, run_settlements
from marketplace.domain.tracking.proximity import ProximityPolicy, TrackingEvent, estimate_arrival
from marketplace.domain.tracking.schemas import LocationUpdateRequest, StartTrackingRequest
from marketplace.domain.tracking.service import LocationTrackingService
from marketplace.models_tracking import LocationTracking
from marketplace.shared.geo import haversine_distance

# Roughly 5.8 km north of the service point
FAR_LAT = 3.900


@pytest.fixture
def seeker(db):
    return make_user(db, role="seeker")


@pytest.fixture
def provider(db):
    return make_provider(db)


@pytest.fixture
def tracking(db, settlement):
    return LocationTrackingService(db, settlement=settlement)


@pytest.fixture
def confirmed(db, seeker, provider):
    return make_session(
        db,
        seeker,
        provider,
        status="confirmed",
        service_latitude=SERVICE_LAT,
        service_longitude=SERVICE_LNG,
    )


def start(tracking, session, user, lat=FAR_LAT, lng=SERVICE_LNG):
    return tracking.start_tracking(
        session.id, StartTrackingRequest(providerLatitude=lat, providerLongitude=lng), user
    )


def test_haversine_distance():
    assert haversine_distance(SERVICE_LAT, SERVICE_LNG, SERVICE_LAT, SERVICE_LNG) == 0
    # One degree of latitude is about 111 km
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111195, rel=1e-3)


def test_proximity_policy():
    policy = ProximityPolicy(arrival_radius_meters=100)

    assert policy.evaluate(99.9, "on_route") == TrackingEvent.ARRIVED
    assert policy.evaluate(100, "on_route") == TrackingEvent.ARRIVED
    assert policy.evaluate(150, "on_route") is None
    assert policy.evaluate(10, "at_location") is None
    assert policy.evaluate(None, "on_route") is None


def test_estimate_arrival():
    now = datetime(2030, 1, 7, 9, 0)

    assert estimate_arrival(600, 10, now=now) == now + timedelta(seconds=60)
    assert estimate_arrival(600, 0, now=now) is None
    assert estimate_arrival(600, None, now=now) is None


def test_start_moves_session_in_progress(db, tracking, confirmed, provider):
    record = start(tracking, confirmed, provider)

    db.refresh(confirmed)
    db.refresh(provider)
    assert confirmed.status == "in_progress"
    assert record.status == "on_route"
    assert record.is_active is True
    assert record.service_latitude == SERVICE_LAT
    assert record.distance_to_destination == pytest.approx(5782, rel=0.01)
    assert provider.current_latitude == FAR_LAT


def test_second_start_conflicts(db, tracking, confirmed, provider):
    start(tracking, confirmed, provider)

    with pytest.raises(HTTPException) as exc:
        start(tracking, confirmed, provider)
    assert exc.value.status_code == 409
    assert db.query(LocationTracking).count() == 1


def test_only_assigned_provider_starts_tracking(db, tracking, confirmed, seeker):
    for user in (seeker, make_provider(db)):
        with pytest.raises(HTTPException) as exc:
            start(tracking, confirmed, user)
        assert exc.value.status_code == 403


def test_unconfirmed_session_cannot_be_tracked(db, tracking, seeker, provider):
    session = make_session(
        db, seeker, provider, status="assigned", service_latitude=SERVICE_LAT, service_longitude=SERVICE_LNG
    )

    with pytest.raises(HTTPException) as exc:
        start(tracking, session, provider)
    assert exc.value.status_code == 400


def test_service_location_is_required(db, tracking, seeker, provider):
    session = make_session(db, seeker, provider, status="confirmed")

    with pytest.raises(HTTPException) as exc:
        start(tracking, session, provider)
    assert exc.value.status_code == 400


def test_location_update_computes_eta(tracking, confirmed, provider):
    start(tracking, confirmed, provider)

    record = tracking.update_location(
        confirmed.id, LocationUpdateRequest(latitude=3.860, longitude=SERVICE_LNG, speed=10), provider
    )

    assert record.status == "on_route"
    assert record.distance_to_destination == pytest.approx(1334, rel=0.01)
    assert record.estimated_arrival_time is not None


def test_provider_within_radius_arrives(tracking, confirmed, provider):
    start(tracking, confirmed, provider)

    record = tracking.update_location(
        confirmed.id, LocationUpdateRequest(latitude=3.8485, longitude=SERVICE_LNG), provider
    )

    assert record.status == "at_location"
    assert record.arrived_at is not None
    assert record.estimated_arrival_time is None


def test_arrival_is_not_rolled_back(tracking, confirmed, provider):
    start(tracking, confirmed, provider)
    tracking.mark_arrived(confirmed.id, provider)

    record = tracking.update_location(
        confirmed.id, LocationUpdateRequest(latitude=FAR_LAT, longitude=SERVICE_LNG), provider
    )

    assert record.status == "at_location"


def test_seeker_cannot_push_locations(tracking, confirmed, provider, seeker):
    start(tracking, confirmed, provider)

    with pytest.raises(HTTPException) as exc:
        tracking.update_location(
            confirmed.id, LocationUpdateRequest(latitude=3.86, longitude=SERVICE_LNG), seeker
        )
    assert exc.value.status_code == 403


def test_complete_service_completes_and_settles(db, tracking, confirmed, provider, wallet, settlement):
    start(tracking, confirmed, provider)
    tracking.mark_arrived(confirmed.id, provider)
    tracking.mark_service_started(confirmed.id, provider)

    record = tracking.complete_service(confirmed.id, provider)
    run_settlements(settlement)

    db.refresh(confirmed)
    assert record.status == "service_complete"
    assert record.is_active is False
    assert record.service_completed_at is not None
    assert confirmed.status == "completed"
    assert confirmed.earnings_settled_at is not None
    assert [c["session_id"] for c in wallet.calls] == [confirmed.id]

    with pytest.raises(HTTPException) as exc:
        tracking.complete_service(confirmed.id, provider)
    assert exc.value.status_code == 404
    assert len(wallet.calls) == 1


def test_stop_tracking_keeps_session_status(db, tracking, confirmed, provider, seeker):
    start(tracking, confirmed, provider)

    assert tracking.stop_tracking(confirmed.id, seeker) == {"message": "Location tracking stopped"}

    db.refresh(confirmed)
    assert confirmed.status == "in_progress"
    view = tracking.get_seeker_tracking(confirmed.id, seeker)
    assert view["trackingActive"] is False

    # Tracking can be restarted after a stop
    assert start(tracking, confirmed, provider).is_active is True


def test_seeker_view(tracking, confirmed, provider, seeker, db):
    assert tracking.get_seeker_tracking(confirmed.id, seeker)["message"] == "Location tracking not started yet"

    start(tracking, confirmed, provider)
    view = tracking.get_seeker_tracking(confirmed.id, seeker)

    assert view["trackingActive"] is True
    assert view["providerId"] == provider.id
    assert view["providerLocation"]["latitude"] == FAR_LAT

    with pytest.raises(HTTPException) as exc:
        tracking.get_seeker_tracking(confirmed.id, make_user(db))
    assert exc.value.status_code == 403


def test_tracking_endpoints(client, auth, confirmed, provider, seeker, wallet):
    auth.user = provider
    base = f"/sessions/{confirmed.id}/tracking"

    response = client.post(
        f"{base}/start", json={"providerLatitude": FAR_LAT, "providerLongitude": SERVICE_LNG}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "on_route"

    response = client.post(
        f"{base}/start", json={"providerLatitude": FAR_LAT, "providerLongitude": SERVICE_LNG}
    )
    assert response.status_code == 409

    response = client.put(f"{base}/location", json={"latitude": 3.8481, "longitude": SERVICE_LNG})
    assert response.json()["status"] == "at_location"

    auth.user = seeker
    assert client.get(base).json()["status"] == "at_location"

    auth.user = provider
    response = client.post(f"{base}/complete")
    assert response.status_code == 200
    assert response.json()["isActive"] is False
    assert len(wallet.calls) == 1
