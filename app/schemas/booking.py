"""
Pydantic schemas for booking assignment endpoints
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class UnassignedBooking(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    service: Optional[str] = None
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    address: Optional[str] = None
    apt_no: Optional[str] = None
    total_price: Optional[float] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    status: Optional[str] = None


class UnassignedBookingsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bookings: List[UnassignedBooking] = Field(default_factory=list)
    can_grab: bool = Field(False, alias="canGrab")
    error: Optional[str] = None


class GrabJobRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: str = Field(..., alias="bookingId", min_length=1)


class SchedulingOutcomeResponse(BaseModel):
    """Result of running the scheduling entry for a booking"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    outcome: str
    message: str
    provider_id: Optional[str] = Field(None, alias="providerId")
    provider_name: Optional[str] = Field(None, alias="providerName")
