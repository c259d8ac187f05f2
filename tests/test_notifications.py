"""Notification dispatch and customer email tests."""

import smtplib
import uuid

import pytest

from app.core.tenant import TenantContext
from app.models import AdminNotification
from app.services.email.email_service import EmailService
from app.services.invitation.state_machine import EventType, InvitationEvent
from app.services.notification.notification_service import NotificationDispatcher, build_admin_message
from app.tasks import email_tasks


def test_build_admin_message():
    sent = build_admin_message(InvitationEvent(EventType.INVITATION_SENT, {
        "provider_name": "Sam Lee", "declined_by": "Pat Smith",
    }))
    assert sent["title"] == "Next provider invited"
    assert sent["message"] == "Pat Smith declined. Invitation sent to Sam Lee."

    exhausted = build_admin_message(InvitationEvent(EventType.NO_PROVIDERS, {"stage": "exhausted"}))
    assert exhausted["title"] == "All providers declined"

    assert build_admin_message(InvitationEvent(EventType.CUSTOMER_NO_PROVIDER)) is None


def test_dispatch_writes_admin_rows_and_email(db, factory):
    business = factory.business()
    booking = factory.booking(business)
    sent = []
    dispatcher = NotificationDispatcher(db, email_sender=lambda **kwargs: sent.append(kwargs))

    delivered = dispatcher.dispatch(TenantContext(business_id=business.id), [
        InvitationEvent(EventType.NO_PROVIDERS, {"booking_id": booking.id, "stage": "exhausted"}),
        InvitationEvent(EventType.CUSTOMER_NO_PROVIDER, {"booking_id": booking.id}),
    ])

    assert delivered == 2
    notification = db.query(AdminNotification).one()
    assert notification.link == "/admin/bookings"
    assert notification.extra["booking_id"] == str(booking.id)
    assert sent[0]["scheduled_date"] == "2026-02-01"
    assert sent[0]["customer_name"] == "Jane Doe"


def test_dispatch_survives_email_failure(db, factory):
    business = factory.business()
    booking = factory.booking(business)

    def broken_sender(**kwargs):
        raise RuntimeError("smtp down")

    dispatcher = NotificationDispatcher(db, email_sender=broken_sender)
    delivered = dispatcher.dispatch(TenantContext(business_id=business.id), [
        InvitationEvent(EventType.CUSTOMER_NO_PROVIDER, {"booking_id": booking.id}),
        InvitationEvent(EventType.PROVIDER_ASSIGNED, {"booking_id": booking.id, "provider_name": "Sam"}),
    ])

    assert delivered == 1
    assert db.query(AdminNotification).one().title == "Booking auto-assigned"


def test_customer_email_skipped_for_unknown_booking(db, factory):
    business = factory.business()
    sent = []
    dispatcher = NotificationDispatcher(db, email_sender=lambda **kwargs: sent.append(kwargs))

    assert not dispatcher.notify_customer_no_provider(TenantContext(business_id=business.id), uuid.uuid4())
    assert sent == []


def test_no_provider_email_content(monkeypatch):
    captured = {}

    def fake_send(**kwargs):
        captured.update(kwargs)
        return True

    monkeypatch.setattr(EmailService, "send_email", staticmethod(fake_send))

    assert EmailService.send_no_provider_found_email(
        to_email="jane@example.com",
        customer_name="Jane",
        business_name="Sparkle Cleaning",
        booking_ref="BK1A2B3C",
        service="Deep Clean",
        scheduled_date="2026-02-01",
        scheduled_time="10:30",
    )
    assert captured["subject"] == "Update on your booking BK1A2B3C"
    assert "2026-02-01 at 10:30" in captured["plain_text"]
    assert "Sparkle Cleaning" in captured["html_content"]


def test_schedule_line():
    assert EmailService.build_schedule_line(None, None) == "your requested time"
    assert EmailService.build_schedule_line("2026-02-01", None) == "2026-02-01"


def test_email_task_runs_eagerly(monkeypatch):
    calls = []
    monkeypatch.setattr(
        EmailService, "send_no_provider_found_email", staticmethod(lambda **kwargs: calls.append(kwargs))
    )

    result = email_tasks.send_no_provider_found_email.apply(kwargs={
        "to_email": "jane@example.com",
        "customer_name": "Jane",
        "business_name": "Sparkle Cleaning",
        "booking_ref": "BK1A2B3C",
    }).get()

    assert result == {"status": "success", "email": "jane@example.com", "booking_ref": "BK1A2B3C"}
    assert calls[0]["service"] is None


def test_smtp_connection_closed_when_send_fails(monkeypatch):
    class FailingServer:
        closed = False

        def sendmail(self, *args):
            raise smtplib.SMTPRecipientsRefused({"jane@example.com": (550, b"No such user")})

        def quit(self):
            FailingServer.closed = True

    monkeypatch.setattr(EmailService, "_get_smtp_connection", staticmethod(FailingServer))

    with pytest.raises(smtplib.SMTPRecipientsRefused):
        EmailService.send_email("jane@example.com", "Hello", "<p>Hello</p>")
    assert FailingServer.closed
