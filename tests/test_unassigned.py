"""Unassigned folder and grab-job tests."""

from datetime import date

import pytest

from app.core.exceptions import Conflict, InvalidInput, NotFound, PermissionDenied
from app.models import AdminNotification, Booking
from app.services.scheduling.unassigned_service import UnassignedService

TODAY = date(2026, 2, 1)


def test_list_unassigned_sorted_and_filtered(db, factory):
    business = factory.business()
    provider = factory.provider(business)
    late = factory.booking(business, scheduled_date=date(2026, 2, 3), scheduled_time="09:00")
    early = factory.booking(business, scheduled_date=TODAY, scheduled_time="14:00")
    earliest = factory.booking(business, scheduled_date=TODAY, scheduled_time="08:00")
    factory.booking(business, scheduled_date=date(2026, 1, 30))  # past
    factory.booking(business, status="cancelled")
    factory.booking(business, provider_id=provider.id)
    factory.booking(factory.business("Other"))

    result = UnassignedService.list_for_provider(db, provider, today=TODAY)

    assert result["can_grab"] is True
    assert [b["id"] for b in result["bookings"]] == [str(earliest.id), str(early.id), str(late.id)]


def test_list_when_business_hides_unassigned(db, factory):
    business = factory.business()
    provider = factory.provider(business)
    factory.policy(business, providers_can_see_unassigned=False)
    factory.booking(business)

    result = UnassignedService.list_for_provider(db, provider, today=TODAY)
    assert result == {"error": "Providers cannot see unassigned jobs", "bookings": [], "can_grab": False}


def test_grab_job(db, factory):
    business = factory.business()
    provider = factory.provider(business, "Grabber")
    booking = factory.booking(business)

    UnassignedService.grab_job(db, provider, str(booking.id))

    saved = db.query(Booking).filter(Booking.id == booking.id).one()
    assert saved.provider_id == provider.id
    assert saved.status == "confirmed"
    assert saved.assignment_source == "grab"
    notification = db.query(AdminNotification).one()
    assert notification.notification_type == "provider_grabbed_job"
    assert notification.message == "Grabber Smith grabbed the booking for Jane Doe - Deep Clean"


def test_grab_job_errors(db, factory):
    business = factory.business()
    first = factory.provider(business, "First")
    second = factory.provider(business, "Second")
    booking = factory.booking(business)

    with pytest.raises(InvalidInput):
        UnassignedService.grab_job(db, first, "not-a-uuid")
    with pytest.raises(NotFound):
        UnassignedService.grab_job(db, first, str(factory.booking(factory.business("Other")).id))

    UnassignedService.grab_job(db, first, booking.id)
    with pytest.raises(Conflict):
        UnassignedService.grab_job(db, second, booking.id)
    assert db.query(Booking).filter(Booking.id == booking.id).one().provider_id == first.id


def test_grab_job_not_allowed(db, factory):
    business = factory.business()
    provider = factory.provider(business)
    factory.policy(business, providers_can_see_unassigned=False)
    booking = factory.booking(business)

    with pytest.raises(PermissionDenied):
        UnassignedService.grab_job(db, provider, booking.id)
