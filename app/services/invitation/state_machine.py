# ============================================================================
# FILE: app/services/invitation/state_machine.py
# Pure transition logic for the sequential invitation chain
# ============================================================================
"""
NoInvitation -> Pending(p) -> Accepted(p)
                           -> Declined -> Pending(next) | Exhausted
                           -> Declined -> Assigned (booking already has a provider)

Nothing here touches the database. Each transition returns the next state,
the provider to invite (if any) and the events the dispatcher should emit.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID


class ChainState(str, enum.Enum):
    NO_INVITATION = "no_invitation"
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    ASSIGNED = "assigned"  # Booking taken outside the chain


class EventType(str, enum.Enum):
    INVITATION_SENT = "invitation_sent"
    INVITATION_ACCEPTED = "invitation_accepted"
    NO_PROVIDERS = "no_providers"
    CUSTOMER_NO_PROVIDER = "customer_no_provider"
    PROVIDER_ASSIGNED = "provider_assigned"
    PROVIDER_GRABBED_JOB = "provider_grabbed_job"


@dataclass(frozen=True)
class CandidateProvider:
    id: UUID
    name: str = "Provider"
    invitation_priority: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_provider(cls, provider) -> "CandidateProvider":
        return cls(
            id=provider.id,
            name=provider.display_name,
            invitation_priority=provider.invitation_priority or 0,
            created_at=provider.created_at,
        )


@dataclass(frozen=True)
class InvitationEvent:
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Transition:
    state: ChainState
    next_provider: Optional[CandidateProvider] = None
    events: List[InvitationEvent] = field(default_factory=list)


def _created_sort_key(created_at: Optional[datetime]):
    # Missing timestamps sort last; aware and naive values compare as UTC
    if created_at is None:
        return (1, datetime.max)
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
    return (0, created_at)


def order_candidates(providers: Iterable[CandidateProvider]) -> List[CandidateProvider]:
    """Highest invitation_priority first, then oldest provider first"""
    return sorted(
        providers,
        key=lambda p: (-(p.invitation_priority or 0), _created_sort_key(p.created_at))
    )


def next_candidate(
        active_providers: Iterable[CandidateProvider],
        already_invited_ids: Iterable[UUID],
        exclude_provider_id: Optional[UUID] = None
) -> Optional[CandidateProvider]:
    """First provider in invitation order who was never offered this booking"""
    invited = set(already_invited_ids)
    for candidate in order_candidates(active_providers):
        if candidate.id == exclude_provider_id or candidate.id in invited:
            continue
        return candidate
    return None


def start_chain(
        booking_id: UUID,
        active_providers: Iterable[CandidateProvider],
        already_invited_ids: Iterable[UUID] = ()
) -> Transition:
    """Entry: offer the booking to the top-priority provider"""
    first = next_candidate(active_providers, already_invited_ids)
    if first is None:
        return Transition(
            state=ChainState.NO_INVITATION,
            events=[InvitationEvent(EventType.NO_PROVIDERS, {
                "booking_id": booking_id,
                "stage": "entry",
            })],
        )

    return Transition(
        state=ChainState.PENDING,
        next_provider=first,
        events=[InvitationEvent(EventType.INVITATION_SENT, {
            "booking_id": booking_id,
            "provider_id": first.id,
            "provider_name": first.name,
        })],
    )


def accept(booking_id: UUID, provider: CandidateProvider) -> Transition:
    """Terminal success: the booking belongs to this provider"""
    return Transition(
        state=ChainState.ACCEPTED,
        next_provider=None,
        events=[InvitationEvent(EventType.INVITATION_ACCEPTED, {
            "booking_id": booking_id,
            "provider_id": provider.id,
            "provider_name": provider.name,
        })],
    )


def decline(
        booking_id: UUID,
        declining_provider: CandidateProvider,
        active_providers: Iterable[CandidateProvider],
        already_invited_ids: Iterable[UUID]
) -> Transition:
    """Advance to the next uninvited provider, or exhaust the chain"""
    following = next_candidate(active_providers, already_invited_ids, declining_provider.id)

    if following is not None:
        return Transition(
            state=ChainState.PENDING,
            next_provider=following,
            events=[InvitationEvent(EventType.INVITATION_SENT, {
                "booking_id": booking_id,
                "provider_id": following.id,
                "provider_name": following.name,
                "declined_by": declining_provider.name,
            })],
        )

    return Transition(
        state=ChainState.EXHAUSTED,
        events=[
            InvitationEvent(EventType.NO_PROVIDERS, {
                "booking_id": booking_id,
                "stage": "exhausted",
                "declined_by": declining_provider.name,
            }),
            InvitationEvent(EventType.CUSTOMER_NO_PROVIDER, {"booking_id": booking_id}),
        ],
    )
