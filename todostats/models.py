"""Immutable models for recurrence rules, tasks and rollup results.

Recurrence patterns and ends are tagged unions of frozen dataclasses: the
variant class IS the tag, so weekly-only fields can never sit on a monthly
pattern. Build these from raw documents with `data_builders`, or directly
in code and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .utils.math_utils import calculate_percentage, safe_ratio

# =============================================================================
# Recurrence patterns
# =============================================================================


@dataclass(frozen=True)
class DailyPattern:
    """Occurs every `interval` days starting from the rule's start date."""

    interval: int = 1


@dataclass(frozen=True)
class WeeklyPattern:
    """Occurs on `days_of_week` (0=Sunday) within every `interval`-th week.

    Weeks are Sunday-start and anchored to the start date's week.
    """

    interval: int = 1
    days_of_week: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class DayOfMonth:
    """Monthly mode: a fixed day number (1-31), never clamped."""

    day: int


@dataclass(frozen=True)
class NthWeekday:
    """Monthly mode: the nth (1-4) or last (-1) `weekday` of the month."""

    nth: int
    weekday: int


MonthlyMode = DayOfMonth | NthWeekday


@dataclass(frozen=True)
class MonthlyPattern:
    """Occurs in every `interval`-th month counted from the start month."""

    interval: int
    mode: MonthlyMode


RecurrencePattern = DailyPattern | WeeklyPattern | MonthlyPattern


# =============================================================================
# Recurrence ends
# =============================================================================


@dataclass(frozen=True)
class NeverEnds:
    """The rule has no end date."""


@dataclass(frozen=True)
class EndsOnDate:
    """The rule may occur on `end_date` itself but never after it."""

    end_date: date


RecurrenceEnd = NeverEnds | EndsOnDate


# =============================================================================
# Rules and tasks
# =============================================================================


@dataclass(frozen=True)
class RecurrenceRule:
    """A recurring to-do.

    Attributes:
        id: Opaque rule id (series document id)
        start_date: First date the rule can occur; anchors interval math
        end: NeverEnds or EndsOnDate
        pattern: Daily, weekly or monthly pattern
        active: Inactive rules never occur on any date
        title: Display title, only used for sorting stats rows
    """

    id: str
    start_date: date
    end: RecurrenceEnd = field(default_factory=NeverEnds)
    pattern: RecurrencePattern = field(default_factory=DailyPattern)
    active: bool = True
    title: str = ""

    @property
    def end_date(self) -> date | None:
        """Inclusive end date, or None for rules that never end."""
        if isinstance(self.end, EndsOnDate):
            return self.end.end_date
        return None


@dataclass(frozen=True)
class OneOffTask:
    """A non-recurring to-do with a single due date."""

    id: str
    due_date: date
    completed: bool = False
    title: str = ""


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class RollupResult:
    """Scheduled/completed counts and streaks over a rule's lifetime."""

    total_scheduled: int = 0
    total_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0

    @property
    def completion_rate(self) -> float:
        """Completed / scheduled, or 0.0 when nothing was scheduled."""
        return safe_ratio(self.total_completed, self.total_scheduled)

    @property
    def completion_percentage(self) -> float:
        """Completion rate as a 0-100 percentage, rounded for display."""
        return calculate_percentage(self.total_completed, self.total_scheduled)


@dataclass
class DayTally:
    """Scheduled and completed occurrence counts for one calendar date.

    Mutable: the aggregate bumps these while walking every rule.
    """

    scheduled: int = 0
    completed: int = 0

    @property
    def is_power_day(self) -> bool:
        """Every occurrence scheduled on this date was completed."""
        return self.scheduled > 0 and self.completed == self.scheduled


@dataclass(frozen=True)
class RuleStatsRow:
    """One row of the per-rule stats table."""

    id: str
    title: str
    completed_count: int
    completion_rate: float
    longest_streak: int


@dataclass(frozen=True)
class AggregateStats:
    """Totals across every active rule."""

    rows: tuple[RuleStatsRow, ...] = ()
    total_scheduled: int = 0
    total_completed: int = 0
    power_days: int = 0
    streak: int = 0

    @property
    def overall_rate(self) -> float:
        """Completed / scheduled across all rules, 0.0 when empty."""
        return safe_ratio(self.total_completed, self.total_scheduled)

    @property
    def overall_percentage(self) -> float:
        """Overall rate as a 0-100 percentage, rounded for display."""
        return calculate_percentage(self.total_completed, self.total_scheduled)


@dataclass(frozen=True)
class MonthSummary:
    """Past-or-today occurrences of one item inside a calendar month."""

    scheduled: int = 0
    completed: int = 0

    @property
    def completion_rate(self) -> float:
        """Completed / scheduled, or 0.0 when nothing was scheduled."""
        return safe_ratio(self.completed, self.scheduled)
