"""Invitation timeout sweep tests."""

from datetime import datetime, timedelta, timezone

from app.core.tenant import TenantContext
from app.models import InvitationRecord
from app.services.invitation.invitation_service import InvitationService
from app.services.invitation.timeout_sweep import expire_stale_invitations, is_expired
from app.tasks import invitation_tasks

SENT = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)


def test_is_expired():
    assert not is_expired(SENT, 60, SENT + timedelta(minutes=59))
    assert is_expired(SENT, 60, SENT + timedelta(minutes=60))
    assert is_expired(SENT.replace(tzinfo=None), 5, SENT + timedelta(minutes=10))
    assert not is_expired(None, 5, SENT)


def _setup(db, factory, scheduling_type="accept_or_decline"):
    business = factory.business()
    first = factory.provider(business, "First", priority=2)
    second = factory.provider(business, "Second", priority=1)
    factory.policy(business, scheduling_type=scheduling_type, accept_decline_timeout_minutes=30)
    booking = factory.booking(business)
    InvitationService.start_invitation(db, TenantContext(business_id=business.id), booking, now=SENT)
    return first, second, booking


def _by_provider(db, booking):
    rows = db.query(InvitationRecord).filter(InvitationRecord.booking_id == booking.id).all()
    return {row.provider_id: row for row in rows}


def test_sweep_advances_stale_invitation(db, factory):
    first, second, booking = _setup(db, factory)

    assert expire_stale_invitations(db, now=SENT + timedelta(minutes=10)) == 0
    assert expire_stale_invitations(db, now=SENT + timedelta(minutes=31)) == 1

    rows = _by_provider(db, booking)
    assert rows[first.id].status == "declined"
    assert rows[first.id].response_notes == "Timed out"
    assert rows[second.id].status == "pending"


def test_sweep_ignores_answered_invitations(db, factory):
    first, _, booking = _setup(db, factory)
    invitation = _by_provider(db, booking)[first.id]
    InvitationService.accept_invitation(db, first, invitation.id)

    assert expire_stale_invitations(db, now=SENT + timedelta(days=1)) == 0


def test_sweep_skips_automatic_businesses(db, factory):
    _setup(db, factory, scheduling_type="accepted_automatically")
    assert expire_stale_invitations(db, now=SENT + timedelta(days=1)) == 0


def test_sweep_task_runs_eagerly(db, factory):
    first, second, booking = _setup(db, factory)

    result = invitation_tasks.expire_stale_invitations.apply().get()

    assert result == {"status": "success", "advanced": 1}
    db.expire_all()
    assert _by_provider(db, booking)[second.id].status == "pending"
