# ============================================================================
# FILE: app/api/v1/admin/bookings.py
# Admin triggers for booking assignment
# ============================================================================
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from uuid import UUID

from app.api.dependencies import get_db, get_tenant_context
from app.core.exceptions import InvalidInput, NotFound
from app.core.tenant import TenantContext
from app.schemas.booking import SchedulingOutcomeResponse
from app.services.booking.booking_service import BookingService
from app.services.scheduling.booking_scheduling_service import BookingSchedulingService, SchedulingOutcome

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


def _to_response(outcome: SchedulingOutcome) -> SchedulingOutcomeResponse:
    return SchedulingOutcomeResponse(
        outcome=outcome.outcome,
        message=outcome.message,
        provider_id=str(outcome.provider_id) if outcome.provider_id else None,
        provider_name=outcome.provider_name
    )


@router.post("/{booking_id}/schedule", response_model=SchedulingOutcomeResponse)
async def schedule_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        tenant: TenantContext = Depends(get_tenant_context),
        db: Session = Depends(get_db)
):
    """Assign or invite according to the business's scheduling type"""
    outcome = BookingSchedulingService.process_booking_scheduling(db, tenant, booking_id)
    return _to_response(outcome)


@router.post("/{booking_id}/send-invitation", response_model=SchedulingOutcomeResponse)
async def send_invitation(
        booking_id: UUID = Path(..., description="The booking ID"),
        tenant: TenantContext = Depends(get_tenant_context),
        db: Session = Depends(get_db)
):
    """
    Start the invitation chain for an unassigned booking regardless of the
    scheduling type (e.g. when an earlier attempt never created one).
    """
    booking = BookingService.get_booking(db, tenant, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if booking.provider_id:
        raise InvalidInput("Booking already has a provider assigned")

    outcome = BookingSchedulingService.send_invitation(db, tenant, booking)
    if outcome.outcome == "unassigned":
        raise InvalidInput(outcome.message)
    return _to_response(outcome)
