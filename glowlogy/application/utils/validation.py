from __future__ import annotations

import re
from datetime import date

from glowlogy.application.exceptions import ValidationError


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[+]?[0-9]{10,13}$")
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
# Calendar date, optionally followed by an ISO time of day.
DATE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})(T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$")

_PHONE_SEPARATORS = re.compile(r"[\s\-.()]")


def require(field: str, value: str | None, label: str | None = None) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(field, f"{label or field.replace('_', ' ').capitalize()} is required.")
    return text


def clean_phone(phone: str) -> str:
    return _PHONE_SEPARATORS.sub("", phone or "")


def validate_phone(phone: str | None, field: str = "phone") -> str:
    """Single phone rule for every flow. Returns the cleaned number."""
    cleaned = clean_phone(require(field, phone, "Phone number"))
    if not PHONE_PATTERN.match(cleaned):
        raise ValidationError(field, "Please enter a valid phone number.")
    return cleaned


def validate_email(email: str | None, field: str = "email") -> str:
    text = require(field, email, "Email")
    if not EMAIL_PATTERN.match(text):
        raise ValidationError(field, "Please enter a valid email address.")
    return text.lower()


def validate_iso_date(value: str | None, field: str = "date") -> str:
    text = require(field, value, "Date")
    match = DATE_PATTERN.match(text)
    if not match:
        raise ValidationError(field, "Please choose a valid date.")
    try:
        return date.fromisoformat(match.group(1)).isoformat()
    except ValueError:
        raise ValidationError(field, "Please choose a valid date.")


def validate_time(value: str | None, allowed: tuple[str, ...] | None = None, field: str = "time") -> str:
    text = require(field, value, "Time")
    if not TIME_PATTERN.match(text):
        raise ValidationError(field, "Please choose a valid time.")
    if allowed is not None and text not in allowed:
        raise ValidationError(field, "Please choose one of the available time slots.")
    return text
