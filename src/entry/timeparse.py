"""Resolve ``new -t`` time input to a bucketed local timestamp."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from .config import MAX_BUCKET_SIZE, MIN_BUCKET_SIZE
from .errors import TimeParseError

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"(\d+)(?::(\d+))?\s*(am|pm)?", re.IGNORECASE)


def floor_minute(minute: int, minute_bucket_size: int) -> int:
    """Round ``minute`` down to a multiple of the bucket size."""
    return (minute // minute_bucket_size) * minute_bucket_size


def clock_number(digits: str, error: str) -> int:
    """Convert clock digits, reporting ``error`` for values too long to convert."""
    try:
        return int(digits)
    except ValueError:
        raise TimeParseError(error) from None


def to_24_hour(hour: int, meridiem: Optional[str]) -> int:
    """Convert a clock hour to 24-hour form.

    Raises:
        TimeParseError: If the hour is out of range for its clock
    """
    if meridiem is None:
        if hour > 23:
            raise TimeParseError("invalid hour input")
        return hour

    if not 1 <= hour <= 12:
        raise TimeParseError("invalid hour input for meridiem time")
    if meridiem == "am":
        return hour % 12
    return 12 if hour == 12 else hour + 12


def get_datetime(time: str, minute_bucket_size: int, now: Optional[datetime] = None) -> datetime:
    """Resolve a time string against the current local time.

    Accepts ``now``, ``tomorrow`` or a clock time such as ``9``, ``14:30`` or
    ``7:45pm``. A clock time earlier than now resolves to tomorrow. Minutes
    are floored to ``minute_bucket_size`` and seconds are dropped.

    Args:
        time: Time input from the command line
        minute_bucket_size: Minute granularity, 1-60
        now: Reference time (defaults to the current local time)

    Returns:
        Naive local datetime

    Raises:
        TimeParseError: If the input is not a recognized or valid time
        ValueError: If ``minute_bucket_size`` is out of range
    """
    if not MIN_BUCKET_SIZE <= minute_bucket_size <= MAX_BUCKET_SIZE:
        raise ValueError(
            f"minute bucket size must be between {MIN_BUCKET_SIZE} and {MAX_BUCKET_SIZE}, "
            f"got {minute_bucket_size}"
        )

    if now is None:
        now = datetime.now()

    text = time.strip().lower()

    if text == "now":
        resolved = now
    elif text == "tomorrow":
        resolved = now + timedelta(days=1)
    else:
        match = TIME_PATTERN.fullmatch(text)
        if match is None:
            raise TimeParseError("unrecognized time input")

        hour_digits, minute_digits, meridiem = match.groups()
        hour_error = "invalid hour input for meridiem time" if meridiem else "invalid hour input"
        hour = to_24_hour(clock_number(hour_digits, hour_error), meridiem)
        minute = clock_number(minute_digits, "invalid minute input") if minute_digits is not None else 0
        if minute > 59:
            raise TimeParseError("invalid minute input")

        resolved = now.replace(hour=hour, minute=minute)
        if (hour, minute) < (now.hour, now.minute):
            resolved += timedelta(days=1)

    resolved = resolved.replace(
        minute=floor_minute(resolved.minute, minute_bucket_size),
        second=0,
        microsecond=0,
    )
    logger.debug("Resolved time %r to %s", time, resolved.isoformat())
    return resolved
