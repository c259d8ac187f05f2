"""API tests."""

import uuid
from datetime import date, datetime, timezone

import pytest

from app.models import Booking, InvitationRecord


@pytest.mark.asyncio
async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_detailed_health(client):
    resp = await client.get("/health/detailed")
    assert resp.status_code == 200
    body = resp.json()
    assert body["database"] == "healthy"
    assert body["redis"] == "skipped"
    assert body["invitations"] == {"timeout_sweep_enabled": False, "pending": 0}
    assert body["overall"] == "healthy"


# ============================================================================
# Available slots
# ============================================================================

@pytest.mark.asyncio
async def test_available_slots(client, factory):
    business = factory.business()
    provider = factory.provider(business)
    factory.rule(provider, 0, "10:00:00", "12:00:00", effective_date=date(2026, 2, 1))

    resp = await client.get(
        f"/api/v1/admin/providers/{provider.id}/available-slots",
        params={"date": "2026-02-01", "businessId": str(business.id)},
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "providerId": str(provider.id),
        "date": "2026-02-01",
        "availableSlots": ["10:00", "10:30", "11:00", "11:30"],
        "count": 4,
    }


@pytest.mark.asyncio
async def test_available_slots_errors(client, factory):
    business = factory.business()
    other = factory.business("Other")
    provider = factory.provider(business)
    inactive = factory.provider(business, status="inactive")
    url = f"/api/v1/admin/providers/{provider.id}/available-slots"

    resp = await client.get(url)
    assert resp.status_code == 400

    resp = await client.get(url, params={"date": "01-02-2026"})
    assert resp.status_code == 400

    resp = await client.get(
        f"/api/v1/admin/providers/{uuid.uuid4()}/available-slots", params={"date": "2026-02-01"}
    )
    assert resp.status_code == 404

    resp = await client.get(url, params={"date": "2026-02-01"}, headers={"X-Business-ID": str(other.id)})
    assert resp.status_code == 403

    resp = await client.get(
        f"/api/v1/admin/providers/{inactive.id}/available-slots", params={"date": "2026-02-01"}
    )
    assert resp.status_code == 403
    assert resp.json()["slots"] == []


@pytest.mark.asyncio
async def test_unprefixed_paths(client, factory):
    business = factory.business()
    provider = factory.provider(business)
    factory.rule(provider, 0, "10:00:00", "11:00:00", effective_date=date(2026, 2, 1))
    headers = {"X-Business-ID": str(business.id)}

    resp = await client.get(
        f"/api/v1/providers/{provider.id}/available-slots",
        params={"date": "2026-02-01"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["availableSlots"] == ["10:00", "10:30"]

    resp = await client.put("/api/v1/store-options", headers=headers, json={"scheduling_type": "accept_or_decline"})
    assert resp.status_code == 200
    resp = await client.get("/api/v1/store-options", headers=headers)
    assert resp.json()["options"]["scheduling_type"] == "accept_or_decline"


# ============================================================================
# Store options
# ============================================================================

@pytest.mark.asyncio
async def test_store_options_round_trip(client, factory):
    business = factory.business()
    headers = {"X-Business-ID": str(business.id)}

    resp = await client.get("/api/v1/admin/store-options", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["options"]["scheduling_type"] == "accepted_automatically"

    resp = await client.put(
        "/api/v1/admin/store-options",
        json={
            "businessId": str(business.id),
            "scheduling_type": "accept_or_decline",
            "accept_decline_timeout_minutes": 99999,
            "unknown_field": "ignored",
        },
    )
    assert resp.status_code == 200
    options = resp.json()["options"]
    assert options["accept_decline_timeout_minutes"] == 1440
    assert options["scheduling_type"] == "accept_or_decline"

    resp = await client.get("/api/v1/admin/store-options", headers=headers)
    assert resp.json()["options"]["accept_decline_timeout_minutes"] == 1440


@pytest.mark.asyncio
async def test_store_options_errors(client, factory):
    business = factory.business()

    resp = await client.get("/api/v1/admin/store-options")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Business ID required"}

    resp = await client.put("/api/v1/admin/store-options", json={"scheduling_type": "accept_or_decline"})
    assert resp.status_code == 400

    resp = await client.put(
        "/api/v1/admin/store-options",
        headers={"X-Business-ID": str(business.id)},
        json={"scheduling_type": "whenever"},
    )
    assert resp.status_code == 400


# ============================================================================
# Provider portal
# ============================================================================

@pytest.mark.asyncio
async def test_invitation_requires_token(client):
    resp = await client.get("/api/v1/provider/invitation")
    assert resp.status_code == 401

    resp = await client.get("/api/v1/provider/invitation", headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_invitation_flow(client, db, factory, auth_headers, sent_emails):
    business = factory.business()
    first = factory.provider(business, "First", priority=2, created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
    second = factory.provider(business, "Second", priority=1)
    factory.policy(business, scheduling_type="accept_or_decline")
    booking = factory.booking(business)
    admin = {"X-Business-ID": str(business.id)}

    resp = await client.post(f"/api/v1/admin/bookings/{booking.id}/schedule", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["outcome"] == "invited"
    assert resp.json()["providerId"] == str(first.id)

    resp = await client.get("/api/v1/provider/invitation", headers=auth_headers(first))
    assert resp.status_code == 200
    invitations = resp.json()["invitations"]
    assert len(invitations) == 1
    assert invitations[0]["bookingId"] == str(booking.id)
    invitation_id = invitations[0]["id"]

    # Another provider cannot answer it
    resp = await client.post(
        "/api/v1/provider/invitation",
        headers=auth_headers(second),
        json={"invitationId": invitation_id, "action": "accept"},
    )
    assert resp.status_code == 403

    resp = await client.post(
        "/api/v1/provider/invitation",
        headers=auth_headers(first),
        json={"invitationId": invitation_id, "action": "decline", "notes": "Sick"},
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Invitation declined"

    resp = await client.post(
        "/api/v1/provider/invitation",
        headers=auth_headers(first),
        json={"invitationId": invitation_id, "action": "decline"},
    )
    assert resp.status_code == 409

    resp = await client.get("/api/v1/provider/invitation", headers=auth_headers(second))
    next_id = resp.json()["invitations"][0]["id"]

    resp = await client.post(
        "/api/v1/provider/invitation",
        headers=auth_headers(second),
        json={"invitationId": next_id, "action": "accept"},
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Booking added to your schedule"

    db.expire_all()
    assert db.query(Booking).filter(Booking.id == booking.id).one().provider_id == second.id
    assert db.query(InvitationRecord).filter(InvitationRecord.status == "pending").count() == 0
    assert sent_emails == []


@pytest.mark.asyncio
async def test_invitation_bad_body(client, factory, auth_headers):
    provider = factory.provider(factory.business())

    resp = await client.post(
        "/api/v1/provider/invitation",
        headers=auth_headers(provider),
        json={"invitationId": str(uuid.uuid4()), "action": "maybe"},
    )
    assert resp.status_code == 422

    resp = await client.post(
        "/api/v1/provider/invitation",
        headers=auth_headers(provider),
        json={"invitationId": "nope", "action": "accept"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_send_invitation_rejects_assigned_booking(client, factory):
    business = factory.business()
    provider = factory.provider(business)
    booking = factory.booking(business, provider_id=provider.id)
    admin = {"X-Business-ID": str(business.id)}

    resp = await client.post(f"/api/v1/admin/bookings/{booking.id}/send-invitation", headers=admin)
    assert resp.status_code == 400

    resp = await client.post(f"/api/v1/admin/bookings/{uuid.uuid4()}/send-invitation", headers=admin)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unassigned_and_grab(client, db, factory, auth_headers):
    business = factory.business()
    provider = factory.provider(business)
    booking = factory.booking(business, scheduled_date=date(2099, 1, 1))

    resp = await client.get("/api/v1/provider/unassigned", headers=auth_headers(provider))
    assert resp.status_code == 200
    body = resp.json()
    assert body["canGrab"] is True
    assert [b["id"] for b in body["bookings"]] == [str(booking.id)]

    resp = await client.post(
        "/api/v1/provider/grab-job",
        headers=auth_headers(provider),
        json={"bookingId": str(booking.id)},
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Job added to your schedule"

    resp = await client.post(
        "/api/v1/provider/grab-job",
        headers=auth_headers(provider),
        json={"bookingId": str(booking.id)},
    )
    assert resp.status_code == 409

    db.expire_all()
    assert db.query(Booking).filter(Booking.id == booking.id).one().assignment_source == "grab"
