"""
Pydantic schemas for the provider invitation endpoints
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class InvitationActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invitation_id: str = Field(..., alias="invitationId", min_length=1)
    action: Literal["accept", "decline"]
    notes: Optional[str] = Field(None, max_length=2000)


class PendingInvitation(BaseModel):
    """A pending invitation with the booking details a provider needs to decide"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    booking_id: str = Field(..., alias="bookingId")
    status: str
    sent_at: Optional[str] = Field(None, alias="sentAt")
    service: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    address: Optional[str] = None
    apt_no: Optional[str] = Field(None, alias="aptNo")
    total_price: Optional[float] = Field(None, alias="totalPrice")
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_phone: Optional[str] = Field(None, alias="customerPhone")


class PendingInvitationsResponse(BaseModel):
    invitations: List[PendingInvitation] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Generic success response."""
    success: bool = True
    message: str
