"""Invitation chain transition tests (no database)."""

import uuid
from datetime import datetime, timezone

from app.services.invitation import state_machine
from app.services.invitation.state_machine import CandidateProvider, ChainState, EventType


def _candidate(name, priority, year):
    return CandidateProvider(
        id=uuid.uuid4(),
        name=name,
        invitation_priority=priority,
        created_at=datetime(year, 1, 1, tzinfo=timezone.utc),
    )


P1 = _candidate("P1", 10, 2024)
P2 = _candidate("P2", 5, 2023)
P3 = _candidate("P3", 5, 2025)
BOOKING = uuid.uuid4()


def test_order_by_priority_then_age():
    undated = CandidateProvider(id=uuid.uuid4(), name="P4", invitation_priority=5)
    assert state_machine.order_candidates([undated, P3, P2, P1]) == [P1, P2, P3, undated]


def test_start_chain_invites_top_priority():
    transition = state_machine.start_chain(BOOKING, [P3, P1, P2])
    assert transition.state == ChainState.PENDING
    assert transition.next_provider == P1
    assert [e.type for e in transition.events] == [EventType.INVITATION_SENT]


def test_start_chain_without_providers():
    transition = state_machine.start_chain(BOOKING, [])
    assert transition.state == ChainState.NO_INVITATION
    assert transition.next_provider is None
    assert transition.events[0].type == EventType.NO_PROVIDERS
    assert transition.events[0].payload["stage"] == "entry"


def test_decline_advances_to_next_uninvited():
    transition = state_machine.decline(BOOKING, P1, [P1, P2, P3], [P1.id])
    assert transition.state == ChainState.PENDING
    assert transition.next_provider == P2
    assert transition.events[0].payload["declined_by"] == "P1"


def test_decline_never_reinvites():
    transition = state_machine.decline(BOOKING, P2, [P1, P2, P3], [P1.id, P2.id])
    assert transition.next_provider == P3


def test_decline_exhausts_chain():
    transition = state_machine.decline(BOOKING, P3, [P1, P2, P3], [P1.id, P2.id, P3.id])
    assert transition.state == ChainState.EXHAUSTED
    assert transition.next_provider is None
    assert [e.type for e in transition.events] == [
        EventType.NO_PROVIDERS,
        EventType.CUSTOMER_NO_PROVIDER,
    ]


def test_accept_is_terminal():
    transition = state_machine.accept(BOOKING, P2)
    assert transition.state == ChainState.ACCEPTED
    assert transition.next_provider is None
    assert transition.events[0].payload["provider_id"] == P2.id
