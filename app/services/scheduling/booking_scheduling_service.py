# ============================================================================
# app/services/scheduling/booking_scheduling_service.py
# ============================================================================
"""
Routes a new unassigned booking according to the business's scheduling type:
- accepted_automatically: auto-assign
- accept_or_decline: invite providers one at a time
- accepts_same_day_only: same-day bookings are invited, later ones auto-assigned
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import NotFound
from app.core.tenant import TenantContext
from app.models.booking import Booking
from app.models.provider import Provider, ProviderStatus
from app.models.scheduling_policy import SchedulingType
from app.services.availability.availability_service import AvailabilityService
from app.services.booking.booking_service import BookingService
from app.services.invitation import state_machine
from app.services.invitation.invitation_service import InvitationService
from app.services.invitation.state_machine import (
    CandidateProvider,
    ChainState,
    EventType,
    InvitationEvent,
)
from app.services.notification.notification_service import NotificationDispatcher
from app.services.scheduling.policy_service import SchedulingPolicyService

logger = logging.getLogger(__name__)


@dataclass
class SchedulingOutcome:
    outcome: str  # skipped, auto_assigned, invited, already_pending, unassigned
    message: str
    provider_id: Optional[UUID] = None
    provider_name: Optional[str] = None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class BookingSchedulingService:
    """Decides how an unassigned booking gets its provider"""

    @staticmethod
    def choose_mode(scheduling_type: str, scheduled_date: Optional[date], today: date) -> str:
        """'auto' or 'invite' for a booking under the given scheduling type"""
        if scheduling_type == SchedulingType.ACCEPT_OR_DECLINE.value:
            return "invite"
        if scheduling_type == SchedulingType.ACCEPTS_SAME_DAY_ONLY.value:
            return "invite" if scheduled_date == today else "auto"
        return "auto"

    @staticmethod
    def process_booking_scheduling(
            db: Session,
            tenant: TenantContext,
            booking_id: UUID,
            dispatcher: Optional[NotificationDispatcher] = None,
            today: Optional[date] = None
    ) -> SchedulingOutcome:
        """Run the scheduling entry for a booking in this business"""
        booking = BookingService.get_booking(db, tenant, booking_id)
        if not booking:
            raise NotFound("Booking not found")

        if booking.provider_id:
            return SchedulingOutcome("skipped", "Booking already has a provider assigned")

        policy = SchedulingPolicyService.get_policy(db, tenant.business_id)
        mode = BookingSchedulingService.choose_mode(
            policy.scheduling_type, booking.scheduled_date, today or utc_today()
        )
        logger.info(f"Scheduling booking {booking_id} with mode '{mode}' ({policy.scheduling_type})")

        if mode == "invite":
            return BookingSchedulingService.send_invitation(db, tenant, booking, dispatcher)
        return BookingSchedulingService.auto_assign(db, tenant, booking, dispatcher)

    @staticmethod
    def send_invitation(
            db: Session,
            tenant: TenantContext,
            booking: Booking,
            dispatcher: Optional[NotificationDispatcher] = None
    ) -> SchedulingOutcome:
        transition = InvitationService.start_invitation(db, tenant, booking, dispatcher)

        if transition.state == ChainState.PENDING and transition.next_provider is None:
            return SchedulingOutcome(
                "already_pending",
                "An invitation is already pending for this booking."
            )
        if transition.next_provider is None:
            return SchedulingOutcome("unassigned", "No providers in this business to invite")

        provider = transition.next_provider
        return SchedulingOutcome(
            "invited",
            f"Invitation sent to {provider.name}.",
            provider_id=provider.id,
            provider_name=provider.name,
        )

    @staticmethod
    def pick_auto_assignee(db: Session, tenant: TenantContext, booking: Booking) -> Optional[Provider]:
        """First active provider, in invitation order, who is free at the booking's time"""
        providers = {
            p.id: p for p in db.query(Provider).filter(
                Provider.business_id == tenant.business_id,
                Provider.status == ProviderStatus.ACTIVE.value
            ).all()
        }
        ordered = state_machine.order_candidates(
            CandidateProvider.from_provider(p) for p in providers.values()
        )

        for candidate in ordered:
            provider = providers[candidate.id]
            if booking.scheduled_date is None or not booking.scheduled_time:
                return provider
            if AvailabilityService.is_available_at(db, provider, booking.scheduled_date, booking.scheduled_time):
                return provider
        return None

    @staticmethod
    def auto_assign(
            db: Session,
            tenant: TenantContext,
            booking: Booking,
            dispatcher: Optional[NotificationDispatcher] = None
    ) -> SchedulingOutcome:
        dispatcher = dispatcher or NotificationDispatcher(db)
        provider = BookingSchedulingService.pick_auto_assignee(db, tenant, booking)

        if provider is None:
            logger.warning(f"Auto-assign found no available provider for booking {booking.id}")
            dispatcher.dispatch(tenant, [InvitationEvent(EventType.NO_PROVIDERS, {
                "booking_id": booking.id,
                "stage": "entry",
            })])
            return SchedulingOutcome("unassigned", "No available provider; booking remains unassigned")

        booking_id = booking.id
        assigned = BookingService.assign_provider(
            db, tenant, booking_id, provider, "auto", only_if_unassigned=True
        )
        db.commit()
        if not assigned:
            return SchedulingOutcome("skipped", "Booking already has a provider assigned")

        dispatcher.dispatch(tenant, [InvitationEvent(EventType.PROVIDER_ASSIGNED, {
            "booking_id": booking_id,
            "provider_id": provider.id,
            "provider_name": provider.display_name,
        })])
        return SchedulingOutcome(
            "auto_assigned",
            f"Booking assigned to {provider.display_name}.",
            provider_id=provider.id,
            provider_name=provider.display_name,
        )
