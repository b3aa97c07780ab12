from __future__ import annotations

import re

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
_INT_RE = re.compile(r"^[+-]?\d+$")
_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")


def validate_numeric_input(value, minimum: int, maximum: int) -> int | None:
    """Return ``value`` as an int when it lies in ``[minimum, maximum]``, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _INT_RE.match(value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if minimum <= number <= maximum else None


def sanitize_input(value):
    """Strip markup from free text; non-strings pass through untouched."""
    if not isinstance(value, str):
        return value
    cleaned = _BLOCK_RE.sub("", value)
    cleaned = _TAG_RE.sub("", cleaned)
    return cleaned.strip()


def is_valid_time(value: str | None) -> bool:
    return bool(value) and bool(_TIME_RE.match(value))


def normalize_time(value) -> str | None:
    """Zero-padded ``HH:MM`` for a valid time string, else None."""
    if not isinstance(value, str) or not is_valid_time(value.strip()):
        return None
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"
