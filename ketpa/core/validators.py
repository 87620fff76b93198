"""Validation helpers shared by the request schemas."""
import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .config import settings

# Minimum 8 chars, 1 uppercase, 1 lowercase, 1 number
STRONG_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")

PHONE_RE = re.compile(
    r"^(\+%s\s)?[6-9]\d{4}\s?\d{5}$" % re.escape(settings.PHONE_COUNTRY_CODE)
)


def is_strong_password(password: str) -> bool:
    return bool(STRONG_PASSWORD_RE.match(password))


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(phone))


def format_phone(raw: str) -> str:
    """
    Normalize a phone number to ``+CC XXXXX XXXXX``.

    Non-digits are dropped and a leading country code is trimmed. Input that
    does not reduce to ten digits is returned unchanged so validation can
    reject it.
    """
    code = settings.PHONE_COUNTRY_CODE
    digits = re.sub(r"\D", "", raw)

    if digits.startswith(code) and len(digits) > 10:
        digits = digits[-10:]

    if len(digits) == 10:
        return f"+{code} {digits[:5]} {digits[5:]}"

    return raw


def normalize_email(email: str) -> Optional[str]:
    """Normalized address, or None when it is not a valid email."""
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return None
