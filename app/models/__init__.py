# app/models/__init__.py
from .base import Base
from .business import Business, BusinessHoliday
from .provider import Provider, ProviderStatus
from .availability import AvailabilityRule, DateOverrideSlot
from .scheduling_policy import SchedulingPolicy, SchedulingType, HolidayBlockedWho
from .booking import Booking
from .invitation import InvitationRecord, InvitationStatus
from .notification import AdminNotification

__all__ = [
    "Base",
    "Business",
    "BusinessHoliday",
    "Provider",
    "ProviderStatus",
    "AvailabilityRule",
    "DateOverrideSlot",
    "SchedulingPolicy",
    "SchedulingType",
    "HolidayBlockedWho",
    "Booking",
    "InvitationRecord",
    "InvitationStatus",
    "AdminNotification",
]
