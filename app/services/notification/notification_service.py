# ============================================================================
# FILE: app/services/notification/notification_service.py
# Delivers the events produced by assignment transitions
# ============================================================================
"""
Admin events become AdminNotification rows; the customer event enqueues an
email. Delivery is best-effort: each event is attempted independently and
failures are logged, never raised back into the transition that produced them.
"""
from typing import Any, Callable, Dict, Iterable, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.tenant import TenantContext
from app.models.booking import Booking
from app.models.business import Business
from app.models.notification import AdminNotification
from app.services.invitation.state_machine import EventType, InvitationEvent

logger = logging.getLogger(__name__)

ADMIN_BOOKINGS_LINK = "/admin/bookings"

EmailSender = Callable[..., Any]


def enqueue_no_provider_email(**kwargs) -> Any:
    """Default customer email sender: hand off to the Celery worker"""
    from app.tasks.email_tasks import send_no_provider_found_email
    return send_no_provider_found_email.delay(**kwargs)


def build_admin_message(event: InvitationEvent) -> Optional[Dict[str, str]]:
    """Title/message for admin-facing events; None for non-admin events"""
    payload = event.payload
    provider_name = payload.get("provider_name") or "Provider"

    if event.type == EventType.INVITATION_SENT:
        if payload.get("declined_by"):
            return {
                "title": "Next provider invited",
                "message": f"{payload['declined_by']} declined. Invitation sent to {provider_name}.",
            }
        return {
            "title": "Booking invitation sent",
            "message": f"Invitation sent to {provider_name}. Booking is in Unassigned until accepted.",
        }

    if event.type == EventType.INVITATION_ACCEPTED:
        return {
            "title": "Provider accepted booking",
            "message": f"{provider_name} accepted the booking invitation.",
        }

    if event.type == EventType.NO_PROVIDERS:
        if payload.get("stage") == "exhausted":
            return {
                "title": "All providers declined",
                "message": "No provider accepted the booking. It remains in Unassigned.",
            }
        return {
            "title": "No providers for new booking",
            "message": "A new booking was placed but no providers are available.",
        }

    if event.type == EventType.PROVIDER_ASSIGNED:
        return {
            "title": "Booking auto-assigned",
            "message": f"Booking assigned to {provider_name}.",
        }

    if event.type == EventType.PROVIDER_GRABBED_JOB:
        customer = payload.get("customer_name") or "Customer"
        service = payload.get("service") or "booking"
        return {
            "title": "Provider grabbed job",
            "message": f"{provider_name} grabbed the booking for {customer} - {service}",
        }

    return None


def _json_safe(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: str(value) if isinstance(value, UUID) else value for key, value in payload.items()}


class NotificationDispatcher:
    """Consumes transition events for one database session"""

    def __init__(self, db: Session, email_sender: Optional[EmailSender] = None):
        self.db = db
        self.email_sender = email_sender or enqueue_no_provider_email

    def create_admin_notification(
            self,
            business_id: UUID,
            notification_type: str,
            title: str,
            message: str,
            link: Optional[str] = ADMIN_BOOKINGS_LINK,
            metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Persist an admin notification. Returns False (and logs) on failure."""
        try:
            self.db.add(AdminNotification(
                business_id=business_id,
                notification_type=notification_type,
                title=title,
                message=message,
                link=link,
                extra=metadata or {},
                read=False
            ))
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating admin notification '{notification_type}' for business {business_id}: {e}")
            return False

    def notify_customer_no_provider(self, tenant: TenantContext, booking_id: UUID) -> bool:
        """Email the customer that nobody accepted. Skipped without a customer email."""
        try:
            booking = self.db.query(Booking).filter(
                Booking.id == booking_id,
                Booking.business_id == tenant.business_id
            ).first()
            if not booking or not booking.customer_email:
                logger.info(f"No customer email for booking {booking_id}; skipping no-provider email")
                return False

            business = self.db.query(Business).filter(Business.id == tenant.business_id).first()

            self.email_sender(
                to_email=booking.customer_email,
                customer_name=booking.customer_name or "Customer",
                business_name=(business.name if business else None) or "Your Business",
                booking_ref=booking.reference,
                service=booking.service,
                scheduled_date=booking.scheduled_date.isoformat() if booking.scheduled_date else None,
                scheduled_time=booking.scheduled_time,
            )
            return True
        except Exception as e:
            logger.warning(f"Never found provider email failed for booking {booking_id}: {e}")
            return False

    def dispatch(self, tenant: TenantContext, events: Iterable[InvitationEvent]) -> int:
        """Deliver events in order; returns how many were delivered"""
        delivered = 0
        for event in events:
            if event.type == EventType.CUSTOMER_NO_PROVIDER:
                delivered += self.notify_customer_no_provider(tenant, event.payload["booking_id"])
                continue

            content = build_admin_message(event)
            if content is None:
                logger.warning(f"No handler for event {event.type}")
                continue

            delivered += self.create_admin_notification(
                business_id=tenant.business_id,
                notification_type=event.type.value,
                title=content["title"],
                message=content["message"],
                metadata=_json_safe(event.payload),
            )
        return delivered
