"""
Pydantic schemas for per-business scheduling options (store options)
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class SchedulingPolicyOptions(BaseModel):
    """Effective options for a business, with defaults filled in"""
    id: str = ""
    business_id: str
    scheduling_type: str
    accept_decline_timeout_minutes: int
    holiday_blocked_who: str
    providers_can_see_unassigned: bool
    providers_can_see_all_unassigned: bool
    notify_providers_on_unassigned: bool
    waitlist_enabled: bool
    clock_in_out_enabled: bool

    @property
    def requires_acceptance(self) -> bool:
        return self.scheduling_type in ("accept_or_decline", "accepts_same_day_only")


class SchedulingPolicyUpdateRequest(BaseModel):
    """
    PUT body for store options.
    Absent fields fall back to their defaults. The timeout is accepted in any
    form and clamped by the service rather than rejected here.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    business_id: Optional[str] = Field(None, alias="businessId")
    scheduling_type: Optional[str] = None
    accept_decline_timeout_minutes: Optional[Any] = None
    holiday_blocked_who: Optional[str] = None
    providers_can_see_unassigned: Optional[bool] = None
    providers_can_see_all_unassigned: Optional[bool] = None
    notify_providers_on_unassigned: Optional[bool] = None
    waitlist_enabled: Optional[bool] = None
    clock_in_out_enabled: Optional[bool] = None


class SchedulingPolicyResponse(BaseModel):
    options: SchedulingPolicyOptions
