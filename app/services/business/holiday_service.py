# app/services/business/holiday_service.py
"""Business holiday lookups"""
from datetime import date
from typing import List
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.models.business import BusinessHoliday

logger = logging.getLogger(__name__)


class HolidayService:
    """Handles business holiday checks"""

    @staticmethod
    def is_date_holiday(db: Session, business_id: UUID, day: date) -> bool:
        """True for an exact holiday_date match, or a recurring holiday on the same month/day"""
        exact = db.query(BusinessHoliday.id).filter(
            BusinessHoliday.business_id == business_id,
            BusinessHoliday.holiday_date == day
        ).first()
        if exact:
            return True

        recurring: List[BusinessHoliday] = db.query(BusinessHoliday).filter(
            BusinessHoliday.business_id == business_id,
            BusinessHoliday.recurring == True
        ).all()

        for holiday in recurring:
            if holiday.holiday_date and (holiday.holiday_date.month, holiday.holiday_date.day) == (day.month, day.day):
                logger.debug(f"{day} matches recurring holiday {holiday.name or holiday.holiday_date}")
                return True

        return False
