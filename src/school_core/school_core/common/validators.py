from __future__ import annotations

import re
import uuid
from typing import Any, Optional

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_E164_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
_MOBILE_RE = re.compile(r"^\d{10}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_length_between(value: str, field_name: str, min_len: int, max_len: int) -> str:
    value = require_non_empty(value, field_name)
    if not (min_len <= len(value) <= max_len):
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_positive_amount(value: Any, field_name: str = "amount") -> int:
    """Money is kept in integer minor units (paise/cents)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer amount in minor units")
    if value <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return value


def require_uuid(value: str, field_name: str) -> str:
    value = require_non_empty(value, field_name)
    try:
        uuid.UUID(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a UUID")
    return value


def require_iso_date(value: str, field_name: str = "date") -> str:
    value = require_non_empty(value, field_name)
    try:
        parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")
    return value


def require_mobile(value: str, field_name: str = "parent_mobile") -> str:
    value = require_non_empty(value, field_name)
    if not _MOBILE_RE.match(value):
        raise ValidationError(f"{field_name} must be exactly 10 digits")
    return value


def require_email(value: str, field_name: str = "email") -> str:
    value = require_non_empty(value, field_name)
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} is not a valid email address")
    return value.lower()


def require_e164(value: str, field_name: str = "mobile") -> str:
    value = require_non_empty(value, field_name)
    if not _E164_RE.match(value):
        raise ValidationError(f"{field_name} must be in E.164 phone format")
    return value


def require_choice(value: Any, field_name: str, choices: type) -> Any:
    """Coerce value into an Enum member of `choices`."""
    try:
        return choices(value)
    except ValueError:
        allowed = ", ".join(str(c.value) for c in choices)
        raise ValidationError(f"{field_name} must be one of: {allowed}")
