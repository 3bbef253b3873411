"""
Shared utility functions for the community pulse service.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Iterable, List, TypeVar

T = TypeVar("T")


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach or convert a datetime to UTC.

    Naive datetimes are assumed to already be in UTC.

    Args:
        value: Datetime, naive or aware

    Returns:
        Timezone-aware UTC datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_text(text: str | None) -> str:
    """
    Normalize whitespace in text content.

    Args:
        text: Input text string (can be None)

    Returns:
        Normalized text with single spaces and trimmed edges
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def excerpt(text: str, width: int = 100) -> str:
    """Cut text to `width` characters, marking the cut with an ellipsis."""
    return text[:width] + ("..." if len(text) > width else "")


def clamp(value: float, low: float, high: float) -> float:
    """
    Clamp a float value to the range [low, high].

    Args:
        value: Input float value
        low: Lower bound
        high: Upper bound

    Returns:
        Value clamped to [low, high]
    """
    return max(low, min(high, value))


def clamp_to_unit_range(value: float) -> float:
    """Clamp a float value to the range [0.0, 1.0]."""
    return clamp(value, 0.0, 1.0)


def round_half_up(value: float, places: int = 3) -> float:
    """
    Round to a fixed number of decimal places, halves rounding upwards.

    The built-in round() rounds halves to even, which makes scores drift
    between platforms that round halves towards +infinity. Every score this
    service returns goes through this helper so outputs stay comparable.

    Args:
        value: Value to round
        places: Number of decimal places

    Returns:
        Rounded value
    """
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def round3(value: float) -> float:
    return round_half_up(value, 3)


def round2(value: float) -> float:
    return round_half_up(value, 2)


def sign(value: float) -> int:
    """Return -1, 0 or 1 according to the sign of value."""
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def chunk(items: Iterable[T], size: int) -> List[List[T]]:
    """
    Split items into consecutive lists of at most `size` elements.

    Args:
        items: Items to split
        size: Maximum chunk length (must be positive)

    Returns:
        List of chunks, the last one possibly shorter
    """
    seq = list(items)
    return [seq[i : i + size] for i in range(0, len(seq), size)]
