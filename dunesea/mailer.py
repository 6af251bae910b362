"""Outbound email to the service inbox (Gmail / Google Workspace SMTP).

Pattern: smtplib over SSL, wrapped in a tenacity retry for connection-level
failures. Sending never raises; callers get a MailResult and the outcome
is logged.
"""
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from dunesea import config
from dunesea.config import Settings
from dunesea.input_sanitizer import InputSanitizer
from dunesea.logging_config import get_logger
from dunesea.models import Appointment, ContactMessage

logger = get_logger(__name__)
retry_logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    ConnectionError,
    TimeoutError,
)

CONTACT_TEMPLATE = """
<h2>New Contact Message</h2>
<p><strong>Name:</strong> {name}</p>
<p><strong>Email:</strong> {email}</p>
<p><strong>Type:</strong> {type}</p>
<p><strong>Received:</strong> {created}</p>
<hr />
<p style="white-space:pre-wrap">{description}</p>
"""

BOOKING_TEMPLATE = """
<h2>New Booking Request</h2>
<p><strong>Requested slot:</strong> {start}</p>
<p><strong>Name:</strong> {name}</p>
<p><strong>Phone:</strong> {phone}</p>
<p><strong>Email:</strong> {email}</p>
<p><strong>Service Type:</strong> {service_type}</p>
<p><strong>Appliance:</strong> {appliance}</p>
<p><strong>Slots:</strong> {slots}</p>
<p><strong>Received:</strong> {created}</p>
<hr />
<p><strong>Notes:</strong></p>
<p style="white-space:pre-wrap">{notes}</p>
"""


def safe(value) -> str:
    return InputSanitizer.strip_angle_brackets(value)


def header(value) -> str:
    return InputSanitizer.header_value(value)


@dataclass
class MailResult:
    ok: bool
    skipped: bool = False
    error: Optional[str] = None


class Mailer:
    """Sends notification emails when SMTP credentials are configured."""

    def __init__(self, settings: Settings, max_attempts: int = 3, backoff: float = 1.0, timeout: int = 15):
        """
        Args:
            settings: Deployment settings (credentials, addresses, SMTP host)
            max_attempts: Total delivery attempts for transient failures
            backoff: Exponential backoff multiplier in seconds
                     Retry delays: 1s, 2s (capped at 8s)
            timeout: SMTP socket timeout in seconds
        """
        self.settings = settings
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        s = self.settings
        return bool(s.gmail_user and s.gmail_app_password and s.mail_to and s.mail_from)

    def _build(self, subject: str, html: str, reply_to: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((config.BUSINESS["name"], self.settings.mail_from))
        msg["To"] = self.settings.mail_to
        msg["Subject"] = subject
        if reply_to:
            msg["Reply-To"] = reply_to
        msg.set_content(html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage):
        s = self.settings

        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, min=self.backoff, max=8 * self.backoff),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=before_sleep_log(retry_logger, logging.WARNING),
            reraise=True
        )
        def send_once():
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=self.timeout) as smtp:
                # App passwords are displayed in groups of four
                smtp.login(s.gmail_user, s.gmail_app_password.replace(" ", ""))
                smtp.send_message(msg)

        send_once()

    def _send(self, kind: str, subject: str, html: str, reply_to: str) -> MailResult:
        if not self.configured:
            logger.info("mail.skipped", kind=kind, reason="mailer not configured")
            return MailResult(ok=False, skipped=True)

        try:
            self._deliver(self._build(subject, html, reply_to))
        except (smtplib.SMTPException, OSError, ValueError) as e:
            # ValueError: headers or addresses the email package refuses to encode
            logger.error("mail.failed", kind=kind, error=str(e))
            return MailResult(ok=False, error=str(e))

        logger.info("mail.sent", kind=kind, to=self.settings.mail_to)
        return MailResult(ok=True)

    def send_contact(self, message: ContactMessage) -> MailResult:
        """Forward a contact form message to the service inbox."""
        subject = f"New website contact: {header(message.name) or 'Unknown'} ({header(message.message_type) or 'General'})"
        html = CONTACT_TEMPLATE.format(
            name=safe(message.name),
            email=safe(message.email),
            type=safe(message.message_type),
            created=safe(message.created_iso),
            description=safe(message.description),
        )
        return self._send("contact", subject, html, header(message.email))

    def send_booking_request(self, appt: Appointment) -> MailResult:
        """Notify the service inbox of a new pending request."""
        subject = f"New booking request: {header(appt.start_iso) or 'Unknown time'} ({header(appt.name) or 'Unknown'})"
        html = BOOKING_TEMPLATE.format(
            start=safe(appt.start_iso),
            name=safe(appt.name),
            phone=safe(appt.phone),
            email=safe(appt.email),
            service_type=safe(appt.service_type),
            appliance=safe(appt.appliance),
            slots=appt.slots,
            created=safe(appt.created_iso),
            notes=safe(appt.notes) or "None",
        )
        return self._send("booking_request", subject, html, header(appt.email))
