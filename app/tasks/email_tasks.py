# ===== app/tasks/email_tasks.py =====
from typing import Optional
import logging

from app.config.celery_config import celery_app
from app.services.email.email_service import EmailService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_no_provider_found_email(
        self,
        to_email: str,
        customer_name: str,
        business_name: str,
        booking_ref: str,
        service: Optional[str] = None,
        scheduled_date: Optional[str] = None,
        scheduled_time: Optional[str] = None
):
    """
    Tell a customer that every provider declined their booking

    Args:
        to_email: Customer's email address
        customer_name: Customer display name
        business_name: Name of the business
        booking_ref: Short booking reference (BKxxxxxx)
        service: Booked service name (optional)
        scheduled_date: YYYY-MM-DD (optional)
        scheduled_time: HH:MM (optional)
    """
    try:
        logger.info(f"Sending no-provider email for {booking_ref} to {to_email}")

        EmailService.send_no_provider_found_email(
            to_email=to_email,
            customer_name=customer_name,
            business_name=business_name,
            booking_ref=booking_ref,
            service=service,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time
        )

        logger.info(f"No-provider email sent for {booking_ref}")
        return {"status": "success", "email": to_email, "booking_ref": booking_ref}

    except Exception as exc:
        logger.error(f"Failed to send no-provider email for {booking_ref}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
