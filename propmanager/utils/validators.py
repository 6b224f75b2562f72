"""
Input coercion helpers shared by the request schemas.
Provides the trim / empty-to-null rules applied to every free-text field.
"""

import re
import uuid
from typing import Any, Optional


UPLOAD_PATH_PATTERN = re.compile(r"^/uploads/\S+$")
HTTP_URL_PATTERN = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


def trim_to_none(value: Any) -> Any:
    """Trim strings and turn blank strings into None; other values pass through."""
    if value is None or not isinstance(value, str):
        return value
    trimmed = value.strip()
    return trimmed or None


def trim_required(value: Any) -> Any:
    """Trim strings, keeping blanks as empty strings so min_length rejects them."""
    if isinstance(value, str):
        return value.strip()
    return value


def empty_to_none(value: Any) -> Any:
    """Blank form values ("" or whitespace) mean "no value" for numeric fields."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def upper_trim(value: Any) -> Any:
    """Normalize enum-like strings (" active " -> "ACTIVE")."""
    if isinstance(value, str):
        return value.strip().upper()
    return value


def is_image_location(value: str) -> bool:
    """Accept hosted http(s) URLs and locally uploaded /uploads/ paths."""
    return bool(HTTP_URL_PATTERN.match(value) or UPLOAD_PATH_PATTERN.match(value))


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """
    Parse a UUID from a UUID instance or string.

    Returns None for empty or malformed input instead of raising, since
    callers treat an unparseable identifier like a missing one.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None
