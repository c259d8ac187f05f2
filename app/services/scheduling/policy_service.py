# ============================================================================
# app/services/scheduling/policy_service.py
# ============================================================================
"""Read/write per-business scheduling options with defaulting and clamping"""
import logging
import math
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.exceptions import InvalidInput
from app.models.scheduling_policy import SchedulingPolicy, SchedulingType, HolidayBlockedWho
from app.schemas.scheduling_policy import SchedulingPolicyOptions

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS: Dict[str, Any] = {
    "scheduling_type": SchedulingType.ACCEPTED_AUTOMATICALLY.value,
    "accept_decline_timeout_minutes": settings.DEFAULT_ACCEPT_DECLINE_TIMEOUT_MINUTES,
    "holiday_blocked_who": HolidayBlockedWho.CUSTOMER.value,
    "providers_can_see_unassigned": True,
    "providers_can_see_all_unassigned": False,
    "notify_providers_on_unassigned": True,
    "waitlist_enabled": False,
    "clock_in_out_enabled": False,
}


def clamp_timeout_minutes(value: Any) -> int:
    """
    Coerce a timeout into [MIN, MAX] minutes.

    Missing, zero and non-numeric values fall back to the default first, so
    the write path never rejects a timeout.
    """
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        minutes = 0.0

    if math.isnan(minutes) or minutes == 0:
        minutes = float(settings.DEFAULT_ACCEPT_DECLINE_TIMEOUT_MINUTES)

    minutes = max(
        float(settings.MIN_ACCEPT_DECLINE_TIMEOUT_MINUTES),
        min(float(settings.MAX_ACCEPT_DECLINE_TIMEOUT_MINUTES), minutes),
    )
    return int(minutes)


class SchedulingPolicyService:
    """Single current value per business; reads fill gaps with defaults"""

    @staticmethod
    def get_policy_row(db: Session, business_id: UUID) -> Optional[SchedulingPolicy]:
        return db.query(SchedulingPolicy).filter(
            SchedulingPolicy.business_id == business_id
        ).first()

    @staticmethod
    def to_options(business_id: UUID, row: Optional[SchedulingPolicy]) -> SchedulingPolicyOptions:
        values = dict(DEFAULT_OPTIONS)
        if row is not None:
            for field in DEFAULT_OPTIONS:
                stored = getattr(row, field)
                if stored is not None:
                    values[field] = stored

        return SchedulingPolicyOptions(
            id=str(row.id) if row is not None else "",
            business_id=str(business_id),
            **values
        )

    @staticmethod
    def get_policy(db: Session, business_id: UUID) -> SchedulingPolicyOptions:
        """Get effective options for a business (defaults when no row exists)"""
        row = SchedulingPolicyService.get_policy_row(db, business_id)
        return SchedulingPolicyService.to_options(business_id, row)

    @staticmethod
    def _normalize_update(data: Dict[str, Any]) -> Dict[str, Any]:
        scheduling_type = data.get("scheduling_type") or DEFAULT_OPTIONS["scheduling_type"]
        if scheduling_type not in {t.value for t in SchedulingType}:
            raise InvalidInput(f"Invalid scheduling_type '{scheduling_type}'")

        holiday_blocked_who = data.get("holiday_blocked_who") or DEFAULT_OPTIONS["holiday_blocked_who"]
        if holiday_blocked_who not in {w.value for w in HolidayBlockedWho}:
            raise InvalidInput(f"Invalid holiday_blocked_who '{holiday_blocked_who}'")

        update = {
            "scheduling_type": scheduling_type,
            "accept_decline_timeout_minutes": clamp_timeout_minutes(
                data.get("accept_decline_timeout_minutes")
            ),
            "holiday_blocked_who": holiday_blocked_who,
        }
        for flag in (
            "providers_can_see_unassigned",
            "providers_can_see_all_unassigned",
            "notify_providers_on_unassigned",
            "waitlist_enabled",
            "clock_in_out_enabled",
        ):
            value = data.get(flag)
            update[flag] = DEFAULT_OPTIONS[flag] if value is None else bool(value)

        return update

    @staticmethod
    def upsert_policy(
            db: Session,
            business_id: UUID,
            data: Dict[str, Any]
    ) -> SchedulingPolicyOptions:
        """
        Replace the business's options.

        Absent fields are written as their defaults; the timeout is clamped
        rather than rejected. Creates the row on first write.
        """
        update = SchedulingPolicyService._normalize_update(data)

        row = SchedulingPolicyService.get_policy_row(db, business_id)
        if row is None:
            row = SchedulingPolicy(business_id=business_id, **update)
            db.add(row)
            logger.info(f"Creating scheduling options for business {business_id}")
        else:
            for field, value in update.items():
                setattr(row, field, value)
            logger.info(f"Updating scheduling options for business {business_id}")

        db.commit()
        db.refresh(row)

        return SchedulingPolicyService.to_options(business_id, row)
