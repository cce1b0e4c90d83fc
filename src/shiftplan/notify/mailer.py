"""Outbound mail delivery."""
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Sequence

from shiftplan.errors import NotificationError
from shiftplan.models.config import MailSettings
from shiftplan.notify.messages import Notification
from shiftplan.utils.logging_setup import get_logger

logger = get_logger("shiftplan.notify.mailer")


class LogMailer:
    """Records and logs notifications instead of sending them."""

    def __init__(self):
        self.outbox: List[Notification] = []

    def send(self, notification: Notification) -> bool:
        if not notification.is_deliverable:
            logger.debug(f"No recipients for {notification.subject!r}, skipping")
            return False
        self.outbox.append(notification)
        logger.info(f"[mail] To: {', '.join(notification.recipients)} | {notification.subject}")
        return True


class SmtpMailer:
    """
    Sends notifications through an SMTP server.

    Delivery failures raise NotificationError; callers decide whether a
    failed email should abort the workflow.
    """

    def __init__(self, settings: MailSettings, timeout: float = 10.0):
        if not settings.is_configured:
            raise NotificationError("SMTP host is not configured")
        self.settings = settings
        self.timeout = timeout

    def _build(self, notification: Notification) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = notification.subject
        msg["From"] = self.settings.from_address
        msg["To"] = ", ".join(notification.recipients)
        msg.attach(MIMEText(notification.body, "plain", "utf-8"))
        if notification.html:
            msg.attach(MIMEText(notification.html, "html", "utf-8"))
        return msg

    def send(self, notification: Notification) -> bool:
        if not notification.is_deliverable:
            logger.debug(f"No recipients for {notification.subject!r}, skipping")
            return False
        s = self.settings
        msg = self._build(notification)
        try:
            with smtplib.SMTP(s.host, s.port, timeout=self.timeout) as server:
                if s.use_tls:
                    server.starttls()
                if s.user and s.password:
                    server.login(s.user, s.password)
                server.sendmail(s.from_address, notification.recipients, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery failed for {notification.subject!r}: {e}")
            raise NotificationError(f"Could not send {notification.subject!r}: {e}") from e
        logger.info(f"Sent {notification.subject!r} to {len(notification.recipients)} recipient(s)")
        return True


def mailer_from_settings(settings: Optional[MailSettings] = None):
    """SMTP mailer when configured, otherwise a LogMailer."""
    settings = settings or MailSettings.from_env()
    if settings.is_configured:
        return SmtpMailer(settings)
    logger.info("SMTP not configured, notifications will be logged only")
    return LogMailer()


def is_origin_allowed(origin: Optional[str], allowed_origins: Sequence[str]) -> bool:
    """Exact-match check of a request Origin against the allow-list."""
    if not origin:
        return False
    return origin.rstrip("/") in {o.rstrip("/") for o in allowed_origins}
