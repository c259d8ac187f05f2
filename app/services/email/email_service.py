# ===== app/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending customer emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses

        Returns:
            bool: True if email sent successfully

        Raises:
            Exception: SMTP failures are logged and re-raised so the calling
            task can retry.
        """
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
            msg['To'] = to_email

            if cc:
                msg['Cc'] = ', '.join(cc)

            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            recipients = [to_email]
            if cc:
                recipients.extend(cc)

            server = EmailService._get_smtp_connection()
            try:
                server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            finally:
                server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

    @staticmethod
    def build_schedule_line(scheduled_date: Optional[str], scheduled_time: Optional[str]) -> str:
        if scheduled_date and scheduled_time:
            return f"{scheduled_date} at {scheduled_time}"
        return scheduled_date or scheduled_time or "your requested time"

    @staticmethod
    def send_no_provider_found_email(
            to_email: str,
            customer_name: str,
            business_name: str,
            booking_ref: str,
            service: Optional[str] = None,
            scheduled_date: Optional[str] = None,
            scheduled_time: Optional[str] = None
    ) -> bool:
        """Tell the customer that no provider accepted their booking"""
        service_name = service or "your service"
        schedule = EmailService.build_schedule_line(scheduled_date, scheduled_time)

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 26px;">We're still looking for a provider</h1>
            </div>

            <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
                <h2 style="color: #333; margin-top: 0;">Hi {customer_name},</h2>

                <p style="font-size: 16px; color: #555;">
                    Unfortunately none of the providers at <strong>{business_name}</strong> were able
                    to accept your booking for <strong>{service_name}</strong> on {schedule}.
                </p>

                <p style="font-size: 16px; color: #555;">
                    Your booking is still on file and the team will reach out to you shortly to
                    arrange another time.
                </p>

                <p style="font-size: 14px; color: #777; margin-top: 30px;">
                    Booking reference: <strong>{booking_ref}</strong>
                </p>
            </div>

            <div style="text-align: center; padding: 20px; font-size: 12px; color: #999;">
                <p>Sent on behalf of {business_name}.</p>
            </div>
        </body>
        </html>
        """

        plain_text = f"""
        Hi {customer_name},

        Unfortunately none of the providers at {business_name} were able to accept
        your booking for {service_name} on {schedule}.

        Your booking is still on file and the team will reach out to you shortly
        to arrange another time.

        Booking reference: {booking_ref}
        """

        return EmailService.send_email(
            to_email=to_email,
            subject=f"Update on your booking {booking_ref}",
            html_content=html_content,
            plain_text=plain_text
        )
