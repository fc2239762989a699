"""ISO-8601 week identifiers and their UTC boundaries.

Weeks start on Monday. A week identifier ``YYYY-Wnn`` names week ``nn`` of
ISO week-numbering year ``YYYY`` and maps to the half-open interval
``[Monday 00:00:00 UTC, next Monday 00:00:00 UTC)``.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from .errors import InvalidWeekError
from .models import WeekInterval

_WEEK_PATTERN = re.compile(r"(\d{4})-W(\d{2})", re.ASCII)
_ONE_WEEK = timedelta(days=7)


def weeks_in_iso_year(year: int) -> int:
    """Return the number of ISO weeks (52 or 53) in ``year``.

    A year is long when January 1st falls on a Thursday, or when it is a leap
    year and January 1st falls on a Wednesday.
    """
    jan1 = date(year, 1, 1).isoweekday()
    if jan1 == 4 or (calendar.isleap(year) and jan1 == 3):
        return 53
    return 52


def _parse(week: str) -> Tuple[int, int]:
    match = _WEEK_PATTERN.fullmatch(week) if isinstance(week, str) else None
    if match is None:
        raise InvalidWeekError(
            f"Invalid week identifier format: {week!r}. "
            "Expected format: YYYY-Wnn (e.g. '2025-W02')."
        )
    return int(match.group(1)), int(match.group(2))


def is_valid_week_identifier(week: str) -> bool:
    """Return ``True`` iff ``week`` names an existing ISO week.

    Never raises: malformed strings, non-string values, week ``00`` and weeks
    beyond the year's last ISO week all yield ``False``.
    """
    try:
        year, week_number = _parse(week)
    except InvalidWeekError:
        return False

    if year < 1 or week_number < 1:
        return False
    if week_number > weeks_in_iso_year(year):
        return False

    try:
        get_week_boundaries(week)
    except (ValueError, OverflowError):
        return False
    return True


def get_week_boundaries(week: str) -> WeekInterval:
    """Return the half-open UTC interval for a valid week identifier.

    Week 1 is the week containing January 4th; week ``nn`` starts
    ``(nn - 1) * 7`` days after that week's Monday.

    Raises:
        InvalidWeekError: If ``week`` is not of the form ``YYYY-Wnn``. Range
            checks are the caller's job via :func:`is_valid_week_identifier`.
    """
    year, week_number = _parse(week)

    jan4 = date(year, 1, 4)
    week1_monday = jan4 - timedelta(days=jan4.weekday())
    monday = week1_monday + timedelta(weeks=week_number - 1)

    start = datetime.combine(monday, time.min, tzinfo=timezone.utc)
    return WeekInterval(week=week, start=start, end=start + _ONE_WEEK)


def as_utc(instant: datetime) -> datetime:
    """Return ``instant`` in UTC, interpreting naive datetimes as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def get_week_identifier(instant: datetime) -> str:
    """Return the ISO week identifier containing ``instant`` in UTC.

    Naive datetimes are interpreted as UTC.
    """
    iso_year, iso_week, _ = as_utc(instant).isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def get_current_week(now: Optional[datetime] = None) -> str:
    """Return the ISO week identifier for ``now`` (default: the current UTC instant)."""
    return get_week_identifier(now or datetime.now(timezone.utc))
