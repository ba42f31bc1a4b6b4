"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

RESERVED_EMAILS = {
    "contact@bindme.co.uk",
}


def normalize_email(email: Optional[str]) -> str:
    if not email:
        return ""
    return email.strip().lower()


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(normalize_email(email)))


def is_reserved_email(email: Optional[str]) -> bool:
    normalized = normalize_email(email)
    return normalized != "" and normalized in RESERVED_EMAILS


def reserved_email_message(label: str) -> str:
    return f"{label} cannot use a reserved address ({', '.join(sorted(RESERVED_EMAILS))})."


def is_valid_uk_mobile(phone: Optional[str]) -> bool:
    if not phone:
        return False
    cleaned = re.sub(r"\s", "", phone)
    return bool(re.fullmatch(r"07\d{9}", cleaned) or re.fullmatch(r"\+447\d{9}", cleaned))


def is_valid_uk_landline(phone: Optional[str]) -> bool:
    if not phone:
        return False
    cleaned = re.sub(r"\s", "", phone)
    if re.fullmatch(r"\+44[1-3]\d{8,9}", cleaned):
        return True
    if not re.match(r"^0[1-3]", cleaned):
        return False
    return 10 <= len(cleaned) <= 11 and cleaned.isdigit()


def is_valid_uk_phone(phone: Optional[str]) -> bool:
    """UK mobile (07xxx xxxxxx) or landline (01/02/03 prefix)"""
    return is_valid_uk_mobile(phone) or is_valid_uk_landline(phone)


def format_uk_phone(phone: Optional[str]) -> str:
    """
    Normalize a UK phone number to its grouped national format.

    +44 7700 900123 -> 07700 900 123
    02079460000     -> 020 7946 0000

    Unrecognised shapes are returned unchanged.
    """
    if not phone:
        return ""

    cleaned = re.sub(r"[^\d+]", "", phone)
    if cleaned.startswith("+44"):
        cleaned = "0" + cleaned[3:]
    elif cleaned.startswith("44"):
        cleaned = "0" + cleaned[2:]

    if cleaned.startswith("07") and len(cleaned) == 11:
        return f"{cleaned[:5]} {cleaned[5:8]} {cleaned[8:]}"
    if cleaned.startswith("020") and len(cleaned) == 11:
        return f"{cleaned[:3]} {cleaned[3:7]} {cleaned[7:]}"
    if cleaned.startswith("01") and len(cleaned) == 11:
        return f"{cleaned[:5]} {cleaned[5:8]} {cleaned[8:]}"

    return phone


UK_PHONE_ERROR = (
    "Invalid UK phone number. Must be a valid UK mobile (07xxx xxxxxx) "
    "or landline (01xxx xxxxxx)"
)


def validate_uk_phone(phone: Optional[str]) -> Optional[str]:
    """Validate and format a UK phone number, raising ValueError when invalid"""
    if not phone:
        return phone
    if not is_valid_uk_phone(phone):
        raise ValueError(UK_PHONE_ERROR)
    return format_uk_phone(phone)


def normalize_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_today() -> datetime:
    return datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
