"""todostats: recurrence and completion analytics for a family to-do tracker.

Pure, side-effect-free library. Callers feed it recurrence rules, sparse
per-date completion maps and an explicit "today"; it answers whether a rule
occurs on a date and rolls completions up into counts, streaks, power days
and calendar-grid statuses.

Typical use:
    from todostats import StatisticsEngine, build_rule, build_completion_index

    rule = build_rule(series_doc, rule_id=series_id)
    index = build_completion_index(completion_docs)
    rollup = StatisticsEngine().compute_rollup(rule, index.get(rule.id, {}), today)
"""

from .data_builders import (
    RuleValidationError,
    build_completion_index,
    build_one_off_task,
    build_pattern,
    build_rule,
    build_series_pattern,
    parse_completion_doc,
    resolve_completed,
)
from .engines import RecurrenceEngine, StatisticsEngine, compute_rollup, occurs_on
from .models import (
    AggregateStats,
    DailyPattern,
    DayOfMonth,
    DayTally,
    EndsOnDate,
    MonthlyPattern,
    MonthSummary,
    NeverEnds,
    NthWeekday,
    OneOffTask,
    RecurrenceRule,
    RollupResult,
    RuleStatsRow,
    WeeklyPattern,
)

__all__ = [
    "AggregateStats",
    "DailyPattern",
    "DayOfMonth",
    "DayTally",
    "EndsOnDate",
    "MonthSummary",
    "MonthlyPattern",
    "NeverEnds",
    "NthWeekday",
    "OneOffTask",
    "RecurrenceEngine",
    "RecurrenceRule",
    "RollupResult",
    "RuleStatsRow",
    "RuleValidationError",
    "StatisticsEngine",
    "WeeklyPattern",
    "build_completion_index",
    "build_one_off_task",
    "build_pattern",
    "build_rule",
    "build_series_pattern",
    "compute_rollup",
    "occurs_on",
    "parse_completion_doc",
    "resolve_completed",
]
