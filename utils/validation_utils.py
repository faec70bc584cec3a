"""
utils/validation_utils.py

Purpose: Input validation

- Coordinate parsing and range checks
- Email format
- Search query sanitization
- CCCD number and birth-date normalization
"""

import math
import re
from typing import Any, Optional, Tuple

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_PATTERN = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})")

MAX_QUERY_LENGTH = 100


def is_valid_email(email: Optional[str]) -> bool:
    """
    Validates email format.

    Args:
        email: Candidate email

    Returns:
        True if the value looks like an email address
    """
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def to_float(value: Any) -> Optional[float]:
    """Parses a number, returning None for missing or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def valid_coordinates(lat: Any, lon: Any) -> Optional[Tuple[float, float]]:
    """
    Parses and range-checks a latitude/longitude pair.

    Returns:
        (lat, lon) as floats, or None if either is invalid or out of range
    """
    latitude = to_float(lat)
    longitude = to_float(lon)
    if latitude is None or longitude is None:
        return None
    if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
        return None
    return latitude, longitude


def sanitize_query(query: str) -> str:
    """Trims whitespace and limits search query length."""
    return query.strip()[:MAX_QUERY_LENGTH]


def escape_regex(text: str) -> str:
    return re.escape(text)


def normalize_cccd_number(value: Any) -> str:
    """Keeps only the digits of an ID card number."""
    return re.sub(r"\D", "", str(value))


def normalize_birth_date(value: Any) -> str:
    """
    Normalizes D/M/YY, DD-MM-YYYY and similar to DD/MM/YYYY.

    Two-digit years above 30 are read as 19xx, others as 20xx.
    Unrecognized input is returned trimmed and unchanged.
    """
    text = str(value).strip()
    match = DATE_PATTERN.search(text)
    if not match:
        return text

    day = match.group(1).zfill(2)
    month = match.group(2).zfill(2)
    year = match.group(3)
    if len(year) == 2:
        year = ("19" if int(year) > 30 else "20") + year
    return f"{day}/{month}/{year}"


def require_text(value: Any, message: str) -> str:
    """
    Rejects missing or blank strings.

    Raises:
        ValueError: With the given message
    """
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValueError(message)
    return value.strip()


def require_number(value: Any, message: str) -> float:
    number = to_float(value)
    if number is None:
        raise ValueError(message)
    return number
