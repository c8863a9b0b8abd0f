import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from conftest import MONDAY, SUNDAY, TUESDAY, add_availability, make_provider, make_user
from marketplace.domain.availability.schemas import AvailabilityCreate, AvailabilityUpdate, TimeSlot
from marketplace.domain.availability.service import AvailabilityService


def test_request_must_fit_inside_a_slot(db):
    provider = make_provider(db)
    add_availability(db, provider, "monday", slots=[("09:00", "17:00")])
    service = AvailabilityService(db)

    assert service.is_available(provider.id, MONDAY, "09:00", "17:00")
    assert service.is_available(provider.id, MONDAY, "10:00", "12:00")
    assert not service.is_available(provider.id, MONDAY, "16:00", "18:00")
    assert not service.is_available(provider.id, MONDAY, "08:30", "10:00")


def test_adjacent_slots_are_not_combined(db):
    provider = make_provider(db)
    add_availability(db, provider, "monday", slots=[("09:00", "12:00"), ("12:00", "17:00")])
    service = AvailabilityService(db)

    assert service.is_available(provider.id, MONDAY, "12:00", "14:00")
    assert not service.is_available(provider.id, MONDAY, "11:00", "13:00")


def test_no_entry_or_inactive_entry_means_unavailable(db):
    provider = make_provider(db)
    add_availability(db, provider, "tuesday", is_active=False)
    service = AvailabilityService(db)

    assert not service.is_available(provider.id, SUNDAY, "09:00", "10:00")
    assert not service.is_available(provider.id, TUESDAY, "09:00", "10:00")


def test_unavailable_slot_is_ignored(db):
    provider = make_provider(db)
    availability = add_availability(db, provider, "monday")
    availability.time_slots = [{"startTime": "08:00", "endTime": "18:00", "isAvailable": False}]
    db.commit()

    assert not AvailabilityService(db).is_available(provider.id, MONDAY, "09:00", "10:00")


def test_create_normalizes_and_sorts_slots(db):
    provider = make_provider(db)
    data = AvailabilityCreate(
        dayOfWeek="monday",
        timeSlots=[
            TimeSlot(startTime="14:00", endTime="18:00"),
            TimeSlot(startTime="8:00", endTime="12:00"),
        ],
    )

    availability = AvailabilityService(db).create(provider.id, data)

    assert [s["startTime"] for s in availability.time_slots] == ["08:00", "14:00"]


def test_one_entry_per_weekday(db):
    provider = make_provider(db)
    service = AvailabilityService(db)
    data = AvailabilityCreate(dayOfWeek="monday", timeSlots=[TimeSlot(startTime="09:00", endTime="17:00")])
    service.create(provider.id, data)

    with pytest.raises(HTTPException) as exc:
        service.create(provider.id, data)
    assert exc.value.status_code == 400


def test_backwards_slot_is_rejected():
    with pytest.raises(ValidationError):
        TimeSlot(startTime="17:00", endTime="09:00")
    with pytest.raises(ValidationError):
        TimeSlot(startTime="25:00", endTime="26:00")


def test_update_and_remove_are_scoped_to_the_owner(db):
    provider = make_provider(db)
    other = make_provider(db)
    availability = add_availability(db, provider, "monday")
    service = AvailabilityService(db)

    with pytest.raises(HTTPException) as exc:
        service.update(availability.id, other.id, AvailabilityUpdate(isActive=False))
    assert exc.value.status_code == 404

    updated = service.update(availability.id, provider.id, AvailabilityUpdate(isActive=False))
    assert updated.is_active is False
    assert service.find_by_provider(provider.id) == []

    with pytest.raises(HTTPException):
        service.remove(availability.id, other.id)
    service.remove(availability.id, provider.id)
    assert service.find_by_provider_and_date(provider.id, MONDAY) is None


def test_default_availability_fills_weekdays_only(db):
    provider = make_provider(db)
    add_availability(db, provider, "monday", slots=[("06:00", "10:00")])
    service = AvailabilityService(db)

    created = service.set_default_availability(provider.id)

    assert [a.day_of_week for a in created] == ["tuesday", "wednesday", "thursday", "friday"]
    entries = service.find_by_provider(provider.id)
    assert entries[0].day_of_week == "monday"
    assert entries[0].time_slots[0]["startTime"] == "06:00"
    assert service.is_available(provider.id, TUESDAY, "09:00", "17:00")


def test_provider_manages_own_availability(client, db, auth):
    provider = make_provider(db)
    auth.user = provider

    response = client.post(
        "/availability",
        json={"dayOfWeek": "monday", "timeSlots": [{"startTime": "09:00", "endTime": "17:00"}]},
    )
    assert response.status_code == 200
    assert response.json()["providerId"] == provider.id

    response = client.get(
        "/availability/check",
        params={
            "providerId": provider.id,
            "date": MONDAY.isoformat(),
            "startTime": "16:00",
            "endTime": "18:00",
        },
    )
    assert response.status_code == 200
    assert response.json()["available"] is False


def test_seeker_cannot_manage_availability(client, db, auth):
    auth.user = make_user(db, role="seeker")

    response = client.post(
        "/availability",
        json={"dayOfWeek": "monday", "timeSlots": [{"startTime": "09:00", "endTime": "17:00"}]},
    )
    assert response.status_code == 403
