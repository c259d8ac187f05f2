# ===== app/services/availability/availability_service.py =====
"""
Provider availability resolution.

Bookable start times for a provider on a date are the union of:
1. Weekly rules for that weekday whose date window covers the date
2. Date override slots for that exact date
Both are expanded on a fixed interval starting exactly at each window's
start_time. A holiday blocks everything when the business blocks holidays
for admins as well as customers.
"""
import logging
import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Set, Union
from uuid import UUID

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.exceptions import InvalidInput, NotFound, PermissionDenied
from app.core.tenant import TenantContext
from app.models.availability import AvailabilityRule, DateOverrideSlot
from app.models.provider import Provider
from app.models.scheduling_policy import HolidayBlockedWho
from app.services.business.holiday_service import HolidayService
from app.services.scheduling.policy_service import SchedulingPolicyService

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ============================================================================
# Pure helpers
# ============================================================================

def parse_calendar_date(value: Optional[str]) -> date:
    """Parse a YYYY-MM-DD string into a date, or raise InvalidInput"""
    if not value:
        raise InvalidInput("Date parameter is required (YYYY-MM-DD)")
    if not DATE_PATTERN.match(value):
        raise InvalidInput("Invalid date format. Use YYYY-MM-DD")
    try:
        year, month, day = (int(part) for part in value.split("-"))
        return date(year, month, day)
    except ValueError:
        raise InvalidInput("Invalid date format. Use YYYY-MM-DD")


def day_of_week(day: date) -> int:
    """0=Sunday .. 6=Saturday, computed from the calendar date alone"""
    return day.isoweekday() % 7


def to_date_string(value: Union[date, datetime, str, None]) -> Optional[str]:
    """Normalize a stored date/timestamp to YYYY-MM-DD"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).split("T")[0]


def rule_applies_to_date(
        date_str: str,
        effective_date: Union[date, str, None],
        expiry_date: Union[date, str, None]
) -> bool:
    """
    Whether a weekly rule covers date_str.

    No effective_date: every week. Effective date only: that single day.
    Both set: the inclusive window. Compared as YYYY-MM-DD strings.
    """
    effective = to_date_string(effective_date)
    if not effective:
        return True

    expiry = to_date_string(expiry_date)
    if expiry:
        return effective <= date_str <= expiry
    return date_str == effective


def parse_time_of_day(value: str) -> int:
    """Parse HH:MM[:SS] into minutes since midnight; raises ValueError when malformed"""
    parts = str(value).strip().split(":")
    if len(parts) < 2 or len(parts) > 3:
        raise ValueError(f"Malformed time '{value}'")

    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= minutes < 60) or not (0 <= hours < 24 or (hours == 24 and minutes == 0)):
        raise ValueError(f"Time out of range '{value}'")
    return hours * 60 + minutes


def format_time_of_day(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_token(value: Optional[str]) -> Optional[str]:
    """HH:MM[:SS] -> HH:MM, or None when malformed"""
    if not value:
        return None
    try:
        return format_time_of_day(parse_time_of_day(value))
    except ValueError:
        return None


def expand_window(
        start_time: str,
        end_time: str,
        interval_minutes: Optional[int] = None
) -> Set[str]:
    """
    Expand [start_time, end_time) into HH:MM tokens.

    Iteration begins exactly at start_time (no snapping to the grid) and
    stops before end_time. Raises ValueError for malformed times.
    """
    step = interval_minutes or settings.SLOT_INTERVAL_MINUTES
    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)

    return {format_time_of_day(minute) for minute in range(start, end, step)}


def merge_slots(recurring_slots: Iterable[str], override_slots: Iterable[str]) -> Set[str]:
    """Date overrides add to weekly availability; they never replace it"""
    return set(recurring_slots) | set(override_slots)


def sort_slots(slots: Iterable[str]) -> List[str]:
    return sorted(set(slots), key=parse_time_of_day)


def _expand_rows(rows, label: str) -> Set[str]:
    tokens: Set[str] = set()
    for row in rows:
        try:
            tokens |= expand_window(row.start_time, row.end_time)
        except (TypeError, ValueError) as e:
            # One bad row must not blank out the rest of the day
            logger.warning(f"Skipping {label} {getattr(row, 'id', '?')}: {e}")
    return tokens


# ============================================================================
# Resolver
# ============================================================================

class AvailabilityService:
    """Computes bookable time slots for a provider on a calendar date"""

    @staticmethod
    def get_assignable_provider(
            db: Session,
            provider_id: UUID,
            tenant: Optional[TenantContext] = None
    ) -> Provider:
        """
        Load a provider that may receive bookings.

        Raises NotFound for unknown providers and PermissionDenied for
        cross-tenant access or providers that are not active.
        """
        provider = db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFound("Provider not found")

        if tenant is not None and provider.business_id != tenant.business_id:
            logger.error(
                f"Business isolation violation: provider {provider_id} belongs to business "
                f"{provider.business_id}, but request is for business {tenant.business_id}"
            )
            raise PermissionDenied("Provider not found or access denied")

        if not provider.is_assignable():
            raise PermissionDenied(
                "Provider is not active and cannot be assigned",
                payload={"slots": []}
            )

        return provider

    @staticmethod
    def recurring_slots(db: Session, provider: Provider, day: date) -> Set[str]:
        date_str = day.isoformat()
        rules: List[AvailabilityRule] = db.query(AvailabilityRule).filter(
            AvailabilityRule.provider_id == provider.id,
            AvailabilityRule.business_id == provider.business_id,
            AvailabilityRule.day_of_week == day_of_week(day),
            AvailabilityRule.is_available == True
        ).all()

        applicable = [
            rule for rule in rules
            if rule_applies_to_date(date_str, rule.effective_date, rule.expiry_date)
        ]
        logger.debug(
            f"Provider {provider.id} on {date_str}: {len(applicable)}/{len(rules)} weekly rules apply"
        )
        return _expand_rows(applicable, "availability rule")

    @staticmethod
    def override_slots(db: Session, provider: Provider, day: date) -> Set[str]:
        slots: List[DateOverrideSlot] = db.query(DateOverrideSlot).filter(
            DateOverrideSlot.provider_id == provider.id,
            DateOverrideSlot.slot_date == day,
            DateOverrideSlot.is_available == True
        ).all()
        return _expand_rows(slots, "date slot")

    @staticmethod
    def is_blocked_by_holiday(db: Session, business_id: UUID, day: date) -> bool:
        policy = SchedulingPolicyService.get_policy(db, business_id)
        if policy.holiday_blocked_who != HolidayBlockedWho.BOTH.value:
            return False
        return HolidayService.is_date_holiday(db, business_id, day)

    @staticmethod
    def slots_for_provider(db: Session, provider: Provider, day: date) -> List[str]:
        """Resolve slots for an already-validated provider"""
        if AvailabilityService.is_blocked_by_holiday(db, provider.business_id, day):
            logger.info(f"{day} is a blocked holiday for business {provider.business_id}")
            return []

        slots = merge_slots(
            AvailabilityService.recurring_slots(db, provider, day),
            AvailabilityService.override_slots(db, provider, day),
        )
        return sort_slots(slots)

    @staticmethod
    def resolve_slots(
            db: Session,
            provider_id: UUID,
            date_value: str,
            tenant: Optional[TenantContext] = None
    ) -> List[str]:
        """
        Get sorted HH:MM slots a provider can be booked into on date_value.

        Args:
            db: Database session
            provider_id: Provider to resolve
            date_value: YYYY-MM-DD
            tenant: Requesting business; None trusts the provider's own business

        Raises:
            InvalidInput: malformed date
            NotFound: unknown provider
            PermissionDenied: inactive provider or cross-tenant request
        """
        day = parse_calendar_date(date_value)
        provider = AvailabilityService.get_assignable_provider(db, provider_id, tenant)
        slots = AvailabilityService.slots_for_provider(db, provider, day)

        logger.info(f"Provider {provider_id} has {len(slots)} slots on {date_value}")
        return slots

    @staticmethod
    def is_available_at(db: Session, provider: Provider, day: date, time_value: str) -> bool:
        token = normalize_time_token(time_value)
        if token is None:
            return False
        return token in AvailabilityService.slots_for_provider(db, provider, day)
