"""
Pydantic schemas for provider availability queries
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List


class AvailableSlotsResponse(BaseModel):
    """Bookable HH:MM start times for one provider on one date"""
    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(..., alias="providerId")
    date: str
    available_slots: List[str] = Field(default_factory=list, alias="availableSlots")
    count: int = 0
