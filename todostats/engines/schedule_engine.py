"""Schedule Engine for todostats.

Decides whether a recurrence rule occurs on a calendar date, and enumerates
occurrences inside a bounded window.

- Occurrence tests are pure calendar arithmetic on `datetime.date`
  (no clamping: a "day 31" rule simply skips 30-day months).
- `dateutil.rrule` is used for RFC 5545 export, so a rule can be handed to
  any iCal consumer and expand to exactly the same dates.

IMPORTANT: This module must NOT import from statistics_engine.py or
data_builders.py. Only import from const.py, models.py and utils.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import TYPE_CHECKING, ClassVar

from dateutil.rrule import DAILY, FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..models import (
    DailyPattern,
    DayOfMonth,
    MonthlyPattern,
    NthWeekday,
    RecurrenceRule,
    WeeklyPattern,
)
from ..utils.dt_utils import (
    dt_add_days,
    dt_add_months,
    dt_days_between,
    dt_first_of_month,
    dt_iter_days,
    dt_last_day_of_month,
    dt_months_between,
    dt_nth_weekday_of_month,
    dt_weekday,
    dt_weeks_between,
)
from ..utils.math_utils import clamp_interval

if TYPE_CHECKING:
    from collections.abc import Iterator


class RecurrenceEngine:
    """Occurrence evaluator for a single recurrence rule.

    Handles all pattern types:
    - Daily: every N days from the start date
    - Weekly: chosen weekdays in every Nth Sunday-start week
    - Monthly: fixed day-of-month or nth/last weekday in every Nth month

    The engine is immutable and holds no clock; "today" is always passed in.

    Example:
        engine = RecurrenceEngine(rule)
        engine.occurs_on(date(2024, 1, 3))
        list(engine.iter_occurrences(date(2024, 1, 1), date(2024, 1, 31)))
    """

    # dateutil weekday objects indexed by Sunday-0 weekday
    RRULE_WEEKDAYS: ClassVar[tuple] = (SU, MO, TU, WE, TH, FR, SA)

    def __init__(self, rule: RecurrenceRule) -> None:
        """Initialize the engine for one rule.

        Note:
            Non-positive intervals are clamped to 1 here, so a rule built in
            code without the data builders still behaves like a stored one.
        """
        self._rule = rule
        self._interval = clamp_interval(rule.pattern.interval)

    @property
    def rule(self) -> RecurrenceRule:
        """The rule this engine evaluates."""
        return self._rule

    @property
    def interval(self) -> int:
        """The effective (clamped) pattern interval."""
        return self._interval

    # =========================================================================
    # Occurrence test
    # =========================================================================

    def occurs_on(self, day: date) -> bool:
        """Return True if the rule is active on `day`.

        Inactive rules, dates before the start date and dates after an
        inclusive end date never occur.
        """
        rule = self._rule
        if not rule.active:
            return False
        if day < rule.start_date:
            return False
        end_date = rule.end_date
        if end_date is not None and day > end_date:
            return False

        pattern = rule.pattern
        if isinstance(pattern, DailyPattern):
            return self._occurs_daily(day)
        if isinstance(pattern, WeeklyPattern):
            return self._occurs_weekly(day, pattern)
        if isinstance(pattern, MonthlyPattern):
            return self._occurs_monthly(day, pattern)

        const.LOGGER.warning(
            "RecurrenceEngine: Unknown pattern %r on rule %s", pattern, rule.id
        )
        return False

    def _occurs_daily(self, day: date) -> bool:
        offset = dt_days_between(day, self._rule.start_date)
        return offset >= 0 and offset % self._interval == 0

    def _occurs_weekly(self, day: date, pattern: WeeklyPattern) -> bool:
        weeks = dt_weeks_between(day, self._rule.start_date)
        if weeks < 0 or weeks % self._interval != 0:
            return False
        return dt_weekday(day) in pattern.days_of_week

    def _occurs_monthly(self, day: date, pattern: MonthlyPattern) -> bool:
        months = dt_months_between(day, self._rule.start_date)
        if months < 0 or months % self._interval != 0:
            return False

        mode = pattern.mode
        if isinstance(mode, DayOfMonth):
            # No clamping: day 31 does not exist in a 30-day month
            return day.day == mode.day
        if isinstance(mode, NthWeekday):
            resolved = dt_nth_weekday_of_month(
                day.year, day.month, mode.weekday, mode.nth
            )
            return resolved is not None and resolved == day
        return False

    # =========================================================================
    # Bounded enumeration
    # =========================================================================

    def effective_end(self, today: date) -> date:
        """Return the last date a rollup may look at: min(today, end date)."""
        end_date = self._rule.end_date
        if end_date is not None and end_date < today:
            return end_date
        return today

    def iter_occurrences(self, start: date, end: date) -> Iterator[date]:
        """Yield occurrence dates inside the closed window [start, end].

        The window is clipped to the rule's own lifetime. Candidates are
        generated per pattern (stepping by interval for daily rules, by month
        for monthly rules) and then confirmed with `occurs_on`, so the output
        always agrees with the per-date test.

        Args:
            start: First date of the window (inclusive).
            end: Last date of the window (inclusive).

        Yields:
            Occurrence dates in ascending order.
        """
        rule = self._rule
        if not rule.active:
            return

        lower = max(start, rule.start_date)
        upper = end
        if rule.end_date is not None:
            upper = min(upper, rule.end_date)
        if upper < lower:
            return

        pattern = rule.pattern
        if isinstance(pattern, DailyPattern):
            candidates = self._daily_candidates(lower, upper)
        elif isinstance(pattern, MonthlyPattern):
            candidates = self._monthly_candidates(lower, upper, pattern)
        else:
            candidates = dt_iter_days(lower, upper)

        for candidate in candidates:
            if self.occurs_on(candidate):
                yield candidate

    def _daily_candidates(self, lower: date, upper: date) -> Iterator[date]:
        """Fast-forward to the first interval boundary, then step by interval."""
        offset = dt_days_between(lower, self._rule.start_date)
        remainder = offset % self._interval
        current = lower
        if remainder:
            current = dt_add_days(lower, self._interval - remainder)
        while current <= upper:
            yield current
            current = dt_add_days(current, self._interval)

    def _monthly_candidates(
        self, lower: date, upper: date, pattern: MonthlyPattern
    ) -> Iterator[date]:
        """Resolve at most one candidate date per month in the window."""
        month = dt_first_of_month(lower)
        while month <= upper:
            mode = pattern.mode
            candidate: date | None = None
            if isinstance(mode, DayOfMonth):
                if mode.day <= dt_last_day_of_month(month.year, month.month):
                    candidate = month.replace(day=mode.day)
            elif isinstance(mode, NthWeekday):
                candidate = dt_nth_weekday_of_month(
                    month.year, month.month, mode.weekday, mode.nth
                )
            if candidate is not None and lower <= candidate <= upper:
                yield candidate
            month = dt_add_months(month, 1)

    # =========================================================================
    # RFC 5545 export
    # =========================================================================

    def to_rrule(self) -> rrule | None:
        """Build a `dateutil.rrule.rrule` expanding to the same occurrences.

        Returns:
            rrule anchored at the start date (midnight, naive), or None when
            the rule is inactive or not representable (weekly with no
            weekdays, or an nth weekday that never occurs).
        """
        rule = self._rule
        if not rule.active:
            return None

        dtstart = datetime.combine(rule.start_date, time())
        until = None
        if rule.end_date is not None:
            until = datetime.combine(rule.end_date, time())
        pattern = rule.pattern

        if isinstance(pattern, DailyPattern):
            return rrule(DAILY, dtstart=dtstart, interval=self._interval, until=until)

        if isinstance(pattern, WeeklyPattern):
            if not pattern.days_of_week:
                return None
            weekdays = [self.RRULE_WEEKDAYS[d] for d in sorted(pattern.days_of_week)]
            return rrule(
                WEEKLY,
                dtstart=dtstart,
                interval=self._interval,
                wkst=SU,
                byweekday=weekdays,
                until=until,
            )

        if isinstance(pattern, MonthlyPattern):
            mode = pattern.mode
            if isinstance(mode, DayOfMonth):
                return rrule(
                    MONTHLY,
                    dtstart=dtstart,
                    interval=self._interval,
                    bymonthday=mode.day,
                    until=until,
                )
            if isinstance(mode, NthWeekday):
                if not _nth_is_exportable(mode.nth):
                    return None
                return rrule(
                    MONTHLY,
                    dtstart=dtstart,
                    interval=self._interval,
                    byweekday=self.RRULE_WEEKDAYS[mode.weekday](mode.nth),
                    until=until,
                )

        return None

    def to_rrule_string(self) -> str:
        """Generate an RFC 5545 RRULE string for iCal export.

        Returns:
            RRULE string (e.g., "FREQ=WEEKLY;INTERVAL=1;WKST=SU;BYDAY=MO,WE,FR")
            or empty string if not representable.
        """
        rule = self._rule
        if not rule.active:
            return ""

        pattern = rule.pattern
        parts: list[str]
        if isinstance(pattern, DailyPattern):
            parts = ["FREQ=DAILY", f"INTERVAL={self._interval}"]
        elif isinstance(pattern, WeeklyPattern):
            if not pattern.days_of_week:
                return ""
            byday = ",".join(
                const.RRULE_WEEKDAY_CODES[d] for d in sorted(pattern.days_of_week)
            )
            parts = [
                "FREQ=WEEKLY",
                f"INTERVAL={self._interval}",
                "WKST=SU",
                f"BYDAY={byday}",
            ]
        elif isinstance(pattern, MonthlyPattern):
            parts = ["FREQ=MONTHLY", f"INTERVAL={self._interval}"]
            mode = pattern.mode
            if isinstance(mode, DayOfMonth):
                parts.append(f"BYMONTHDAY={mode.day}")
            elif isinstance(mode, NthWeekday):
                if not _nth_is_exportable(mode.nth):
                    return ""
                parts.append(
                    f"BYDAY={mode.nth:+d}{const.RRULE_WEEKDAY_CODES[mode.weekday]}"
                )
            else:
                return ""
        else:
            return ""

        if rule.end_date is not None:
            parts.append(f"UNTIL={rule.end_date.strftime('%Y%m%d')}")
        return ";".join(parts)


# =============================================================================
# Module-level helpers
# =============================================================================


def _nth_is_exportable(nth: int) -> bool:
    """Return True if an nth-weekday value can be written as an RRULE BYDAY.

    Zero and negatives other than last (-1) never occur, so there is nothing
    to export.
    """
    return nth >= 1 or nth == const.NTH_LAST


def occurs_on(rule: RecurrenceRule, day: date) -> bool:
    """Return True if `rule` occurs on `day`.

    Convenience wrapper around RecurrenceEngine for one-shot checks.
    """
    return RecurrenceEngine(rule).occurs_on(day)
