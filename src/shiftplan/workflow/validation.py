"""Input sanitising and validation for user-entered text."""
import re
from typing import List, Tuple

from shiftplan.models.team import VALID_ROLES

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
_CSV_TRIGGERS = ("=", "+", "-", "@")

MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 8


def sanitize_input(value: str) -> str:
    """Strip script blocks and the characters < > ' " then trim."""
    if not value:
        return ""
    value = _SCRIPT_RE.sub("", value)
    value = re.sub(r"[<>'\"]", "", value)
    return value.strip()


def validate_email(email: str) -> bool:
    return bool(email) and len(email) <= MAX_EMAIL_LENGTH and bool(_EMAIL_RE.match(email))


def validate_password(password: str) -> Tuple[bool, List[str]]:
    """Returns (is_valid, errors)."""
    password = password or ""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain at least one special character")
    return not errors, errors


def sanitize_csv_input(value) -> str:
    """
    Neutralise spreadsheet formulas: values starting with = + - @ get a
    leading quote, everything else goes through sanitize_input.
    """
    if value is None:
        return ""
    value = str(value)
    if not value:
        return ""
    if value.strip().startswith(_CSV_TRIGGERS):
        return f"'{value}"
    cleaned = sanitize_input(value)
    return f"'{cleaned}" if cleaned.startswith(_CSV_TRIGGERS) else cleaned


def validate_role(role: str) -> bool:
    return bool(role) and role.lower() in VALID_ROLES
