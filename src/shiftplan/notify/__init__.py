# shiftplan/notify - Notification messages and delivery
from .mailer import LogMailer, SmtpMailer, is_origin_allowed, mailer_from_settings
from .messages import Notification, swap_notification, weekly_coverage_digest

__all__ = [
    "Notification", "swap_notification", "weekly_coverage_digest",
    "LogMailer", "SmtpMailer", "mailer_from_settings", "is_origin_allowed",
]
