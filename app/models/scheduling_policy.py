# app/models/scheduling_policy.py
"""
Per-business scheduling options (one row per business, upserted)
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import enum
import uuid
from app.models.base import Base


class SchedulingType(str, enum.Enum):
    ACCEPTED_AUTOMATICALLY = "accepted_automatically"
    ACCEPT_OR_DECLINE = "accept_or_decline"
    ACCEPTS_SAME_DAY_ONLY = "accepts_same_day_only"


class HolidayBlockedWho(str, enum.Enum):
    CUSTOMER = "customer"  # Holidays only hide customer-facing availability
    BOTH = "both"  # Admin-side scheduling is blocked too


class SchedulingPolicy(Base):
    __tablename__ = "business_store_options"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    scheduling_type = Column(String(40), nullable=True)
    accept_decline_timeout_minutes = Column(Integer, nullable=True)
    holiday_blocked_who = Column(String(20), nullable=True)

    # Unassigned folder
    providers_can_see_unassigned = Column(Boolean, nullable=True)
    providers_can_see_all_unassigned = Column(Boolean, nullable=True)
    notify_providers_on_unassigned = Column(Boolean, nullable=True)

    waitlist_enabled = Column(Boolean, nullable=True)
    clock_in_out_enabled = Column(Boolean, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
