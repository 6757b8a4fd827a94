# File: utils/dt_utils.py
"""Calendar date utilities for todostats.

Pure Python, timezone-naive calendar arithmetic. Every function here works on
`datetime.date` values (no time-of-day, no UTC conversion), so recurrence
decisions never shift across midnight.

Weekday convention: 0=Sunday .. 6=Saturday, weeks start on Sunday.
Python's own `date.weekday()` is 0=Monday; use `dt_weekday()` instead.

Functions:
    - set_default_timezone / get_default_timezone: Clock adapter configuration
    - dt_today_local: Today's date for callers (engines never call this)
    - dt_today_iso: Today's date as ISO string
    - dt_parse_ymd: Strict YYYY-MM-DD parsing (fail fast)
    - dt_coerce_date: Accept date, datetime or ISO string
    - dt_format_ymd: Format a date as YYYY-MM-DD
    - dt_add_days / dt_days_between: Day arithmetic
    - dt_add_months / dt_months_between: Calendar-month arithmetic
    - dt_weekday / dt_start_of_week: Sunday-start week helpers
    - dt_last_day_of_month / dt_month_days: Month helpers
    - dt_nth_weekday_of_month: Resolve nth/last weekday of a month
    - dt_iter_days: Inclusive ascending day iteration
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta
import re
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

if TYPE_CHECKING:
    from collections.abc import Iterator

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12

# Last-occurrence marker for nth-weekday resolution
NTH_LAST = -1

_YMD_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ==============================================================================
# Clock adapter (callers only)
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the timezone used to resolve "today" for callers.

    Args:
        tz: ZoneInfo object representing the household's timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the timezone used to resolve "today"."""
    return DEFAULT_TIME_ZONE


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in the local timezone.

    The engines take `today` as a parameter and never call this. It exists
    so callers have one place to read the clock from.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the given timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's local date as ISO string (YYYY-MM-DD)."""
    return dt_format_ymd(dt_today_local(tz))


# ==============================================================================
# Parsing / formatting
# ==============================================================================


def dt_is_ymd(value: object) -> bool:
    """Check that a value is a syntactically valid YYYY-MM-DD string."""
    return isinstance(value, str) and bool(_YMD_PATTERN.match(value))


def dt_parse_ymd(value: str) -> date:
    """Parse a strict YYYY-MM-DD string into a `datetime.date`.

    Args:
        value: ISO calendar date string

    Returns:
        Parsed date.

    Raises:
        ValueError: If the string is not YYYY-MM-DD or names an impossible
            calendar day (e.g. "2023-02-29").

    Examples:
        dt_parse_ymd("2024-02-29") → date(2024, 2, 29)
        dt_parse_ymd("2024-2-9") → ValueError
    """
    if not dt_is_ymd(value):
        raise ValueError(f"Invalid calendar date (expected YYYY-MM-DD): {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as err:
        raise ValueError(f"Invalid calendar date: {value!r}") from err


def dt_coerce_date(value: str | date | datetime) -> date:
    """Normalize a date-like input to `datetime.date`.

    Datetimes are truncated to their calendar date without any timezone
    conversion; strings must be YYYY-MM-DD.

    Raises:
        ValueError: For unparseable strings.
        TypeError: For unsupported input types.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return dt_parse_ymd(value)
    raise TypeError(f"Unsupported date value type: {type(value).__name__}")


def dt_format_ymd(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.isoformat()


# ==============================================================================
# Day / week arithmetic
# ==============================================================================


def dt_add_days(value: date, days: int) -> date:
    """Return `value` shifted by `days` calendar days."""
    return value + timedelta(days=days)


def dt_days_between(later: date, earlier: date) -> int:
    """Return the signed number of calendar days from `earlier` to `later`.

    Examples:
        dt_days_between(date(2024, 1, 10), date(2024, 1, 1)) → 9
        dt_days_between(date(2024, 1, 1), date(2024, 1, 10)) → -9
    """
    return (later - earlier).days


def dt_weekday(value: date) -> int:
    """Return the day of week with 0=Sunday .. 6=Saturday."""
    # date.weekday(): 0=Monday .. 6=Sunday
    return (value.weekday() + 1) % DAYS_PER_WEEK


def dt_start_of_week(value: date) -> date:
    """Return the Sunday on or before `value`."""
    return value - timedelta(days=dt_weekday(value))


def dt_weeks_between(later: date, earlier: date) -> int:
    """Return the signed number of Sunday-start weeks between two dates."""
    return (
        dt_days_between(dt_start_of_week(later), dt_start_of_week(earlier))
        // DAYS_PER_WEEK
    )


# ==============================================================================
# Month arithmetic
# ==============================================================================


def dt_months_between(later: date, earlier: date) -> int:
    """Return the calendar-month difference, ignoring day of month.

    Examples:
        dt_months_between(date(2024, 3, 1), date(2024, 1, 31)) → 2
        dt_months_between(date(2025, 1, 1), date(2024, 12, 31)) → 1
    """
    return (later.year - earlier.year) * MONTHS_PER_YEAR + (
        later.month - earlier.month
    )


def dt_add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day (Jan 31 + 1 → Feb 28/29).

    Only used for month navigation; occurrence rules never clamp.
    """
    return value + relativedelta(months=months)


def dt_first_of_month(value: date) -> date:
    """Return the first day of `value`'s month."""
    return value.replace(day=1)


def dt_last_day_of_month(year: int, month: int) -> int:
    """Return the number of days in the given month (28-31)."""
    return monthrange(year, month)[1]


def dt_month_days(year: int, month: int) -> list[date]:
    """Return every date of a month in ascending order."""
    last_day = dt_last_day_of_month(year, month)
    return [date(year, month, day) for day in range(1, last_day + 1)]


def dt_nth_weekday_of_month(
    year: int, month: int, weekday: int, nth: int
) -> date | None:
    """Resolve the nth occurrence of a weekday within a month.

    Args:
        year: Calendar year
        month: Calendar month (1-12)
        weekday: Day of week, 0=Sunday .. 6=Saturday
        nth: 1-based occurrence, or NTH_LAST (-1) for the last occurrence
            (0 and other negatives never resolve)

    Returns:
        The resolved date, or None when the month has no such occurrence
        (e.g. a 5th Monday in a 4-Monday month).

    Examples:
        dt_nth_weekday_of_month(2024, 1, 1, 1) → date(2024, 1, 1)
        dt_nth_weekday_of_month(2024, 1, 3, -1) → date(2024, 1, 31)
        dt_nth_weekday_of_month(2024, 2, 1, 5) → None
    """
    last_day = dt_last_day_of_month(year, month)

    if nth == NTH_LAST:
        last = date(year, month, last_day)
        shift = (dt_weekday(last) - weekday) % DAYS_PER_WEEK
        return last - timedelta(days=shift)

    if nth < 1:
        return None

    first = date(year, month, 1)
    shift = (weekday - dt_weekday(first)) % DAYS_PER_WEEK
    day = 1 + shift + (nth - 1) * DAYS_PER_WEEK
    if day > last_day:
        return None
    return date(year, month, day)


# ==============================================================================
# Iteration
# ==============================================================================


def dt_iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from `start` to `end` inclusive.

    Yields nothing when `end < start`.
    """
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        yield current
        current += one_day
