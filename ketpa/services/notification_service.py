"""
Appointment confirmation emails.

Formatting helpers turn slot labels into Google Calendar boundaries and fill
the HTML template; ``Notifier`` sends the result through an injected mail
transport. Dispatch is best-effort: failures are logged and reported through
the return value, never raised to the booking workflow.
"""
import html
import logging
import smtplib
import ssl
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from ..core.config import Settings, settings as default_settings
from ..core.errors import NotificationFailure
from .email_templates import (
    APPOINTMENT_CONFIRMATION_SUBJECT,
    APPOINTMENT_CONFIRMATION_TEMPLATE,
)

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"


def format_calendar_date(slot_date: str) -> str:
    """``DD_MM_YYYY`` -> ``YYYYMMDD``. No calendar validation is done."""
    day, month, year = slot_date.split("_")
    return f"{year}{month}{day}"


def format_calendar_time(slot_time: str) -> Tuple[str, str]:
    """``hh:mm AM/PM`` -> one-hour ``(start, end)`` as ``HHMM00`` strings.

    The end of a slot starting after 11 PM wraps to the early hours but keeps
    the same date; callers pair both boundaries with the slot's date.
    """
    parts = slot_time.strip().split(" ")
    clock = parts[0]
    modifier = parts[1].upper() if len(parts) > 1 else None
    hours, minutes = (int(value) for value in clock.split(":"))

    if modifier == "PM" and hours != 12:
        hours += 12
    if modifier == "AM" and hours == 12:
        hours = 0

    start = datetime(2000, 1, 1, hours, minutes)
    end = start + timedelta(hours=1)
    return start.strftime("%H%M00"), end.strftime("%H%M00")


def fill_template(template: str, data: Dict[str, Any]) -> str:
    """Replace ``{{key}}`` for every key in ``data``.

    ``None`` renders as an empty string. Placeholders without a key in
    ``data`` are left untouched.
    """
    for key, value in data.items():
        template = template.replace("{{%s}}" % key, "" if value is None else str(value))
    return template


def build_calendar_url(
    slot_date: str,
    slot_time: str,
    config: Settings = default_settings,
) -> str:
    """Google Calendar "add event" link for a booked slot."""
    calendar_date = format_calendar_date(slot_date)
    start, end = format_calendar_time(slot_time)

    return (
        f"{GOOGLE_CALENDAR_URL}?action=TEMPLATE"
        f"&text={quote(config.CALENDAR_EVENT_TITLE)}"
        f"&dates={calendar_date}T{start}/{calendar_date}T{end}"
        f"&details={quote(config.CALENDAR_EVENT_DETAILS)}"
        f"&location={quote(config.CALENDAR_EVENT_LOCATION)}"
    )


def _escape(value: Any) -> Optional[str]:
    return None if value is None else html.escape(str(value))


def render_confirmation(
    appointment: Dict[str, Any],
    config: Settings = default_settings,
) -> str:
    """HTML confirmation body for an appointment snapshot."""
    user_data = appointment.get("user_data") or {}
    doc_data = appointment.get("doc_data") or {}
    address = doc_data.get("address") or {}
    slot_date = appointment["slot_date"]
    slot_time = appointment["slot_time"]

    # Text fields come from user and clinic records; URLs are inserted as-is
    data = {
        "patientName": _escape(user_data.get("name")),
        "dateFormatted": _escape(slot_date.replace("_", "-")),
        "timeFormatted": _escape(slot_time),
        "timezone": config.TIMEZONE_LABEL,
        "doctorName": _escape(doc_data.get("name")),
        "clinicName": _escape(doc_data.get("clinic_name")),
        "addressLine1": _escape(address.get("line1")),
        "addressLine2": _escape(address.get("line2")),
        "bookingId": _escape(appointment.get("id")),
        "viewAppointmentUrl": config.my_appointments_url,
        "addToCalendarUrl": build_calendar_url(slot_date, slot_time, config),
        "mapsUrl": doc_data.get("location"),
        "rescheduleUrl": config.my_appointments_url,
        "supportEmail": config.SUPPORT_EMAIL,
        "logoUrl": config.LOGO_URL,
        "year": datetime.now().year,
        "city": config.CLINIC_CITY,
    }
    return fill_template(APPOINTMENT_CONFIRMATION_TEMPLATE, data)


class SMTPMailer:
    """Mail transport over SMTP with STARTTLS (or implicit TLS on port 465)."""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        sender_name: str = "Ketpa Appointments",
        use_tls: bool = True,
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender_name = sender_name
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "SMTPMailer":
        return cls(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USER,
            password=config.SMTP_PASSWORD,
            sender_name=config.MAIL_SENDER_NAME,
            use_tls=config.SMTP_USE_TLS,
            timeout=config.SMTP_TIMEOUT,
        )

    @property
    def from_address(self) -> str:
        return f'"{self.sender_name}" <{self.username}>'

    def send(self, to: str, subject: str, html: str) -> None:
        if not self.host or not self.username:
            raise NotificationFailure("SMTP is not configured")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        context = ssl.create_default_context()
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                self._deliver(server, to, msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=context)
                self._deliver(server, to, msg)

    def _deliver(self, server: smtplib.SMTP, to: str, msg: MIMEMultipart) -> None:
        if self.password:
            server.login(self.username, self.password)
        server.sendmail(self.username, [to], msg.as_string())


class Notifier:
    """Formats confirmations and hands them to a mail transport."""

    def __init__(self, mailer, config: Settings = default_settings):
        self.mailer = mailer
        self.config = config

    def send_appointment_confirmation(
        self,
        to: str,
        appointment: Optional[Dict[str, Any]],
        subject: str = APPOINTMENT_CONFIRMATION_SUBJECT,
    ) -> bool:
        """Send the confirmation email. Returns False instead of raising."""
        if not appointment:
            logger.error("Appointment data missing, confirmation not sent")
            return False

        try:
            html = render_confirmation(appointment, self.config)
            self.mailer.send(to, subject, html)
        except Exception as e:
            failure = e if isinstance(e, NotificationFailure) else NotificationFailure(str(e))
            logger.error(
                f"Error sending confirmation for appointment {appointment.get('id')} "
                f"to {to}: {failure.message}"
            )
            return False

        logger.info(f"Confirmation email sent to {to}")
        return True
