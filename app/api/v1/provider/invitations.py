# ============================================================================
# FILE: app/api/v1/provider/invitations.py
# Provider portal: booking invitations and the unassigned folder
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_provider, get_db
from app.models.provider import Provider
from app.schemas.booking import GrabJobRequest, UnassignedBookingsResponse
from app.schemas.invitation import (
    InvitationActionRequest,
    MessageResponse,
    PendingInvitationsResponse,
)
from app.services.invitation.invitation_service import InvitationService
from app.services.scheduling.unassigned_service import UnassignedService

router = APIRouter(prefix="/provider", tags=["Provider Portal"])


@router.get("/invitation", response_model=PendingInvitationsResponse)
async def list_invitations(
        provider: Provider = Depends(get_current_provider),
        db: Session = Depends(get_db)
):
    """List pending invitations for the current provider, newest first"""
    invitations = InvitationService.list_pending_for_provider(db, provider)
    return PendingInvitationsResponse(invitations=invitations)


@router.post("/invitation", response_model=MessageResponse)
async def respond_to_invitation(
        request: InvitationActionRequest,
        provider: Provider = Depends(get_current_provider),
        db: Session = Depends(get_db)
):
    """Accept or decline an invitation addressed to the current provider"""
    InvitationService.respond(
        db,
        provider,
        request.invitation_id,
        request.action,
        request.notes
    )

    if request.action == "accept":
        return MessageResponse(message="Booking added to your schedule")
    return MessageResponse(message="Invitation declined")


@router.get("/unassigned", response_model=UnassignedBookingsResponse)
async def list_unassigned(
        provider: Provider = Depends(get_current_provider),
        db: Session = Depends(get_db)
):
    """Unassigned bookings in the provider's business, when the business allows it"""
    return UnassignedBookingsResponse(**UnassignedService.list_for_provider(db, provider))


@router.post("/grab-job", response_model=MessageResponse)
async def grab_job(
        request: GrabJobRequest,
        provider: Provider = Depends(get_current_provider),
        db: Session = Depends(get_db)
):
    """Take an unassigned booking"""
    UnassignedService.grab_job(db, provider, request.booking_id)
    return MessageResponse(message="Job added to your schedule")
