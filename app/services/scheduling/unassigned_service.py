# app/services/scheduling/unassigned_service.py
"""Unassigned folder: bookings with no provider that providers may grab"""
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, InvalidInput, NotFound, PermissionDenied
from app.core.tenant import TenantContext
from app.models.provider import Provider
from app.services.booking.booking_service import BookingService
from app.services.invitation.invitation_service import InvitationService
from app.services.invitation.state_machine import EventType, InvitationEvent
from app.services.notification.notification_service import NotificationDispatcher
from app.services.scheduling.booking_scheduling_service import utc_today
from app.services.scheduling.policy_service import SchedulingPolicyService

logger = logging.getLogger(__name__)


class UnassignedService:

    @staticmethod
    def list_for_provider(
            db: Session,
            provider: Provider,
            today: Optional[date] = None
    ) -> Dict[str, Any]:
        tenant = TenantContext(business_id=provider.business_id)
        policy = SchedulingPolicyService.get_policy(db, tenant.business_id)

        if not policy.providers_can_see_unassigned:
            return {
                "error": "Providers cannot see unassigned jobs",
                "bookings": [],
                "can_grab": False,
            }

        bookings = BookingService.list_unassigned(db, tenant, today or utc_today())
        summaries: List[Dict[str, Any]] = [BookingService.to_summary(b) for b in bookings]
        return {"bookings": summaries, "can_grab": True}

    @staticmethod
    def grab_job(
            db: Session,
            provider: Provider,
            booking_id: Any,
            dispatcher: Optional[NotificationDispatcher] = None
    ) -> None:
        """Assign an unassigned booking to the requesting provider"""
        tenant = TenantContext(business_id=provider.business_id)
        policy = SchedulingPolicyService.get_policy(db, tenant.business_id)
        if not policy.providers_can_see_unassigned:
            raise PermissionDenied("Grabbing jobs is not allowed")

        try:
            booking_uuid = booking_id if isinstance(booking_id, UUID) else UUID(str(booking_id))
        except ValueError:
            raise InvalidInput("Invalid bookingId")

        booking = BookingService.get_booking(db, tenant, booking_uuid)
        if not booking:
            raise NotFound("Booking not found")
        if booking.provider_id:
            raise Conflict("Booking is already assigned")

        customer_name, service = booking.customer_name, booking.service
        assigned = BookingService.assign_provider(
            db, tenant, booking_uuid, provider, "grab", only_if_unassigned=True
        )
        if not assigned:
            db.rollback()
            raise Conflict("Booking is already assigned")
        closed = InvitationService.close_pending(db, tenant, booking_uuid)
        db.commit()
        if closed:
            logger.info(f"Closed {closed} pending invitation(s) for grabbed booking {booking_uuid}")

        dispatcher = dispatcher or NotificationDispatcher(db)
        dispatcher.dispatch(tenant, [InvitationEvent(EventType.PROVIDER_GRABBED_JOB, {
            "booking_id": booking_uuid,
            "provider_id": provider.id,
            "provider_name": provider.display_name,
            "customer_name": customer_name,
            "service": service,
        })])
