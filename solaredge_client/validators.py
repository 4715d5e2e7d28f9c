# solaredge_client/validators.py
"""Pure input validators.

Every validator takes the raw caller value plus the parameter name used in
error messages, and returns the canonical value or raises ValidationError.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Iterable, Sequence

from solaredge_client.errors import ValidationError


API_KEY_RE = re.compile(r"[0-9A-Z]{32}")
SITE_ID_RE = re.compile(r"[0-9]+")
SERIAL_RE = re.compile(r"([0-9A-F]{2})([0-9A-F]{2})([0-9A-F]{2})([0-9A-F]{2})-([0-9A-F]{2})")

# Vendor limit on the number of sites in one multi-site request.
MAX_SITES_PER_REQUEST = 100


def validate_api_key(value: Any, name: str = "api_key") -> str:
    key = str(value or "").strip().upper()
    if not API_KEY_RE.fullmatch(key):
        raise ValidationError(name, "expected 32 characters of 0-9 and A-Z")
    return key


def validate_site_id(value: Any, name: str = "site_id") -> str:
    if isinstance(value, bool) or value is None:
        raise ValidationError(name, f"'{value}' is not a numeric site id")
    site_id = str(value)
    if not SITE_ID_RE.fullmatch(site_id):
        raise ValidationError(name, f"'{site_id}' is not a numeric site id")
    return site_id


def validate_site_ids(
    values: Iterable[Any],
    name: str = "site_ids",
    limit: int = MAX_SITES_PER_REQUEST,
) -> list[str]:
    """Validate every id, failing on the first bad one."""
    if isinstance(values, (str, int)):
        values = [values]
    site_ids = [validate_site_id(v, name) for v in values]
    if not site_ids:
        raise ValidationError(name, "at least one site id is required")
    if len(site_ids) > limit:
        raise ValidationError(name, f"at most {limit} site ids per request, got {len(site_ids)}")
    return site_ids


def serial_checksum(serial: str) -> int:
    match = SERIAL_RE.fullmatch(serial.upper())
    if not match:
        raise ValidationError("serial", f"'{serial}' does not match XXXXXXXX-XX")
    return sum(int(byte, 16) for byte in match.groups()[:4]) % 256


def validate_serial(value: Any, name: str = "serial") -> str:
    serial = str(value or "").strip().upper()
    match = SERIAL_RE.fullmatch(serial)
    if not match:
        raise ValidationError(name, f"'{value}' does not match XXXXXXXX-XX")
    expected = serial_checksum(serial)
    actual = int(match.group(5), 16)
    if expected != actual:
        raise ValidationError(
            name,
            f"'{serial}' checksum mismatch (expected {expected:02X}, got {actual:02X})",
        )
    return serial


def validate_date_only(value: Any, name: str) -> date:
    if isinstance(value, datetime):
        if value.time() != time(0, 0):
            raise ValidationError(name, f"{value.isoformat()} has a time-of-day component")
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationError(name, f"expected a date, got {type(value).__name__}")


def validate_datetime(value: Any, name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time(0, 0))
    raise ValidationError(name, f"expected a date or datetime, got {type(value).__name__}")


def validate_choice(value: Any, name: str, choices: Sequence[str]) -> str:
    for choice in choices:
        if value == choice:
            return choice
    raise ValidationError(name, f"'{value}' is not one of: {', '.join(choices)}")


def validate_choices(values: Any, name: str, choices: Sequence[str]) -> str:
    """Validate a list of set members and join them with commas."""
    if isinstance(values, str):
        values = [values]
    accepted = [validate_choice(v, name, choices) for v in values]
    if not accepted:
        raise ValidationError(name, f"at least one of: {', '.join(choices)}")
    return ",".join(accepted)


def validate_range(value: Any, name: str, minimum: int, maximum: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(name, f"expected an integer between {minimum} and {maximum}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(name, f"expected an integer between {minimum} and {maximum}") from None
    if number != value and not isinstance(value, str):
        raise ValidationError(name, f"expected an integer between {minimum} and {maximum}")
    if number < minimum or number > maximum:
        raise ValidationError(name, f"{number} is outside {minimum}..{maximum}")
    return number
