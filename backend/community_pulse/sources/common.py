"""
Common utilities for social graph fetchers.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateparser


def parse_utc_datetime(date_string: Optional[str]) -> datetime:
    """
    Parse a date string and convert to UTC datetime.

    Args:
        date_string: Date string in various formats, or None

    Returns:
        UTC datetime object, or current UTC time if input is None/empty
    """
    if not date_string:
        return datetime.now(timezone.utc)

    parsed_date = dateparser.parse(date_string)
    if parsed_date.tzinfo:
        return parsed_date.astimezone(timezone.utc)
    else:
        return parsed_date.replace(tzinfo=timezone.utc)


def clean_text(text: Optional[str]) -> str:
    """
    Clean and normalize text content.

    Args:
        text: Raw text string or None

    Returns:
        Cleaned text string, empty string if input is None
    """
    if not text:
        return ""
    return text.strip()


def optional_int(value: Any) -> Optional[int]:
    """Coerce an identifier that may be missing or null into int or None."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
