# ===== app/services/email/email_service.py =====
import smtplib
from html import escape
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional
import logging

from app.config.settings import settings
from app.models.appointment import Appointment
from app.utils.formatting import format_date_display, format_time_display

logger = logging.getLogger(__name__)

REMINDER_24H = "24h"
REMINDER_1H = "1h"


def cancel_url(appointment: Appointment) -> str:
    return f"{settings.FRONTEND_URL}/cancel-appointment?token={appointment.cancel_token}"


def reschedule_url(appointment: Appointment) -> str:
    return f"{settings.FRONTEND_URL}/reschedule?token={appointment.cancel_token}"


def _when(appointment: Appointment) -> str:
    return (
        f"{format_date_display(appointment.appointment_date)} at "
        f"{format_time_display(appointment.appointment_time)} ({appointment.timezone})"
    )


def _render_html(title: str, gradient: str, greeting: str, paragraphs: List[str],
                 details: List[str], actions: List[tuple]) -> str:
    """Shared layout for guest-facing emails"""
    body = "\n".join(
        f'<p style="font-size: 16px; color: #555;">{paragraph}</p>' for paragraph in paragraphs
    )
    detail_rows = "\n".join(
        f'<p style="margin: 4px 0; font-size: 15px; color: #333;">{line}</p>' for line in details
    )
    buttons = "\n".join(
        f'<a href="{escape(url)}" style="background: {gradient}; color: white; padding: 12px 28px; '
        f'text-decoration: none; border-radius: 5px; font-weight: bold; display: inline-block; '
        f'margin: 6px;">{escape(label)}</a>'
        for label, url in actions
    )

    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: {gradient}; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 26px;">{title}</h1>
            </div>

            <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
                <h2 style="color: #333; margin-top: 0;">{greeting}</h2>

                {body}

                <div style="background-color: #f7f7fb; padding: 16px 20px; border-radius: 8px; margin: 24px 0;">
                    {detail_rows}
                </div>

                <div style="text-align: center; margin: 30px 0;">
                    {buttons}
                </div>

                <hr style="border: none; border-top: 1px solid #e0e0e0; margin: 30px 0;">

                <p style="font-size: 12px; color: #999; margin: 0;">
                    Questions? Reply to this email or contact {settings.SUPPORT_EMAIL}.
                </p>
            </div>

            <div style="text-align: center; padding: 20px; font-size: 12px; color: #999;">
                <p>{settings.BUSINESS_NAME}</p>
            </div>
        </body>
        </html>
        """


def _render_plain(greeting: str, paragraphs: List[str], details: List[str], actions: List[tuple]) -> str:
    lines = [greeting, ""]
    lines.extend(paragraphs)
    lines.append("")
    lines.extend(details)
    lines.append("")
    lines.extend(f"{label}: {url}" for label, url in actions)
    lines.extend(["", f"Questions? Contact {settings.SUPPORT_EMAIL}.", "", settings.BUSINESS_NAME])
    return "\n".join(lines)


class EmailService:
    """Service for sending emails via SMTP"""

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
            cc: Optional[List[str]] = None,
            bcc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses
            bcc: List of BCC email addresses

        Returns:
            bool: True if the email was handed to the SMTP server; errors are raised
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
            if bcc:
                recipients.extend(bcc)

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
    def _meeting_details(appointment: Appointment) -> List[str]:
        details = [
            f"<strong>When:</strong> {_when(appointment)}",
            f"<strong>Duration:</strong> {appointment.duration_minutes} minutes",
        ]
        if appointment.meeting_join_url:
            details.append(
                f'<strong>Join:</strong> <a href="{escape(appointment.meeting_join_url)}">'
                f'{escape(appointment.meeting_join_url)}</a>'
            )
        if appointment.meeting_password:
            details.append(f"<strong>Passcode:</strong> {escape(appointment.meeting_password)}")
        return details

    @staticmethod
    def _plain_details(appointment: Appointment) -> List[str]:
        details = [
            f"When: {_when(appointment)}",
            f"Duration: {appointment.duration_minutes} minutes",
        ]
        if appointment.meeting_join_url:
            details.append(f"Join: {appointment.meeting_join_url}")
        if appointment.meeting_password:
            details.append(f"Passcode: {appointment.meeting_password}")
        return details

    @staticmethod
    def _send_appointment_email(
            appointment: Appointment,
            subject: str,
            title: str,
            gradient: str,
            paragraphs: List[str],
            include_links: bool = True
    ) -> bool:
        # Guest input is escaped for the HTML part only
        greeting = f"Hi {appointment.guest_name},"
        actions = []
        if include_links:
            actions = [("Reschedule", reschedule_url(appointment)), ("Cancel", cancel_url(appointment))]

        html_content = _render_html(
            title, gradient, escape(greeting), paragraphs, EmailService._meeting_details(appointment), actions
        )
        plain_text = _render_plain(greeting, paragraphs, EmailService._plain_details(appointment), actions)

        return EmailService.send_email(
            to_email=appointment.guest_email,
            subject=subject,
            html_content=html_content,
            plain_text=plain_text
        )

    @staticmethod
    def send_appointment_confirmation_email(appointment: Appointment) -> bool:
        """Booking confirmation with join link and self-service links"""
        return EmailService._send_appointment_email(
            appointment,
            subject=f"Appointment Confirmed - {format_date_display(appointment.appointment_date)}",
            title="Your Strategy Call is Booked",
            gradient="linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
            paragraphs=[
                f"Your call with {settings.BUSINESS_NAME} is confirmed.",
                "Use the links below if you need to reschedule or cancel.",
            ],
        )

    @staticmethod
    def send_appointment_cancellation_email(appointment: Appointment) -> bool:
        return EmailService._send_appointment_email(
            appointment,
            subject=f"Appointment Cancelled - {format_date_display(appointment.appointment_date)}",
            title="Appointment Cancelled",
            gradient="linear-gradient(135deg, #f093fb 0%, #f5576c 100%)",
            paragraphs=[
                "Your appointment has been cancelled.",
                f'You can book a new time any time at <a href="{settings.FRONTEND_URL}">{settings.FRONTEND_URL}</a>.',
            ],
            include_links=False,
        )

    @staticmethod
    def send_appointment_rescheduled_email(appointment: Appointment, previous: Optional[Appointment] = None) -> bool:
        """Sent for the new appointment; mentions the previous time when known"""
        paragraphs = ["Your appointment has been moved to a new time."]
        if previous is not None:
            paragraphs.append(f"Previous time: {_when(previous)}")
        paragraphs.append("Your old links no longer work. Use the links below to manage the new booking.")

        return EmailService._send_appointment_email(
            appointment,
            subject=f"Appointment Rescheduled - {format_date_display(appointment.appointment_date)}",
            title="Appointment Rescheduled",
            gradient="linear-gradient(135deg, #4facfe 0%, #00f2fe 100%)",
            paragraphs=paragraphs,
        )

    @staticmethod
    def send_appointment_reminder_email(appointment: Appointment, reminder_type: str) -> bool:
        """Reminder ahead of the call, reminder_type is REMINDER_24H or REMINDER_1H"""
        if reminder_type == REMINDER_24H:
            subject = "📅 Reminder: Your Strategy Call is Tomorrow"
            title = "See You Tomorrow"
            lead = "This is a friendly reminder that your strategy call is tomorrow."
        elif reminder_type == REMINDER_1H:
            subject = "⏰ Starting Soon: Your Strategy Call in 1 Hour"
            title = "Starting Soon"
            lead = "Your strategy call starts in about an hour."
        else:
            raise ValueError(f"Unknown reminder type: {reminder_type}")

        return EmailService._send_appointment_email(
            appointment,
            subject=subject,
            title=title,
            gradient="linear-gradient(135deg, #43e97b 0%, #38f9d7 100%)",
            paragraphs=[lead, "Join using the link below at the scheduled time."],
        )
