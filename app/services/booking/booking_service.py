# ============================================================================
# app/services/booking/booking_service.py
# ============================================================================
"""Applies assignment decisions to booking rows, always scoped by business"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.tenant import TenantContext
from app.models.booking import Booking
from app.models.provider import Provider

logger = logging.getLogger(__name__)

UNASSIGNED_STATUSES = ("pending", "confirmed")


class BookingService:
    """Handles booking reads and assignment writes"""

    @staticmethod
    def get_booking(db: Session, tenant: TenantContext, booking_id: UUID) -> Optional[Booking]:
        return db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.business_id == tenant.business_id
        ).first()

    @staticmethod
    def assign_provider(
            db: Session,
            tenant: TenantContext,
            booking_id: UUID,
            provider: Provider,
            assignment_source: str,
            only_if_unassigned: bool = False
    ) -> bool:
        """
        Set the provider on a booking and confirm it. Does not commit.

        With only_if_unassigned the write is conditional on provider_id still
        being NULL. Returns False when no row was updated.
        """
        query = db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.business_id == tenant.business_id
        )
        if only_if_unassigned:
            query = query.filter(Booking.provider_id.is_(None))

        updated = query.update(
            {
                Booking.provider_id: provider.id,
                Booking.provider_name: provider.display_name,
                Booking.status: "confirmed",
                Booking.assignment_source: assignment_source,
                Booking.updated_at: datetime.now(timezone.utc),
            },
            synchronize_session=False
        )

        if updated:
            logger.info(f"Booking {booking_id} assigned to provider {provider.id} via {assignment_source}")
        else:
            logger.warning(f"Booking {booking_id} was not assigned to provider {provider.id}")
        return updated > 0

    @staticmethod
    def list_unassigned(db: Session, tenant: TenantContext, today: date) -> List[Booking]:
        """Open bookings with no provider, from today on, by date then time"""
        bookings: List[Booking] = db.query(Booking).filter(
            Booking.business_id == tenant.business_id,
            Booking.provider_id.is_(None),
            Booking.status.in_(UNASSIGNED_STATUSES),
            Booking.scheduled_date >= today
        ).all()

        return sorted(
            bookings,
            key=lambda b: (b.scheduled_date.isoformat(), b.scheduled_time or "")
        )

    @staticmethod
    def to_summary(booking: Booking) -> Dict[str, Any]:
        return {
            "id": str(booking.id),
            "service": booking.service,
            "scheduled_date": booking.scheduled_date.isoformat() if booking.scheduled_date else None,
            "scheduled_time": booking.scheduled_time,
            "address": booking.address,
            "apt_no": booking.apt_no,
            "total_price": float(booking.total_price) if booking.total_price is not None else None,
            "customer_name": booking.customer_name,
            "customer_phone": booking.customer_phone,
            "status": booking.status,
        }
