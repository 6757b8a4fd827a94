"""Tests for StatisticsEngine.

Covers per-rule rollups and the five end-to-end scenarios, one-off rollups,
cross-rule power days and global streak, remaining-today counts, and the
calendar grid (day classification, month grid layout, month summary).
"""

from __future__ import annotations

from datetime import date
import logging

import pytest

from tests.helpers import completed_range, make_rule
from todostats import const
from todostats.engines.statistics_engine import StatisticsEngine, compute_rollup
from todostats.models import (
    DayOfMonth,
    DayTally,
    EndsOnDate,
    MonthlyPattern,
    OneOffTask,
    RecurrenceRule,
    RollupResult,
    WeeklyPattern,
)

JAN_1 = date(2024, 1, 1)


def jan(day: int) -> date:
    """Shorthand for a January 2024 date."""
    return date(2024, 1, day)


# ============================================================================
# Single-rule rollup
# ============================================================================


class TestComputeRollupScenarios:
    """End-to-end rollup scenarios."""

    def test_daily_all_completed(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Ten days, ten completions."""
        completions = completed_range(jan(1), jan(10))

        result = stats.compute_rollup(daily_rule, completions, jan(10))

        assert result == RollupResult(
            total_scheduled=10,
            total_completed=10,
            current_streak=10,
            longest_streak=10,
        )
        assert result.completion_rate == 1.0

    def test_daily_one_gap(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """A miss on Jan 5 splits the run into 4 and 5."""
        completions = completed_range(jan(1), jan(10), skip={jan(5)})

        result = stats.compute_rollup(daily_rule, completions, jan(10))

        assert result.total_scheduled == 10
        assert result.total_completed == 9
        assert result.current_streak == 5
        assert result.longest_streak == 5
        assert result.completion_percentage == 90.0

    def test_weekly_mwf_first_week(
        self, stats: StatisticsEngine, mwf_rule: RecurrenceRule
    ) -> None:
        """Mon/Wed/Fri through Friday Jan 5 schedules Jan 1, 3 and 5."""
        result = stats.compute_rollup(mwf_rule, {}, jan(5))

        assert result.total_scheduled == 3
        assert result.total_completed == 0
        assert result.current_streak == 0

    def test_monthly_day_31(self, stats: StatisticsEngine) -> None:
        """Only Jan 31 and Mar 31 exist before Apr 30."""
        rule = make_rule(
            jan(31), pattern=MonthlyPattern(interval=1, mode=DayOfMonth(day=31))
        )
        completions = {jan(31): True, date(2024, 3, 31): True}

        result = stats.compute_rollup(rule, completions, date(2024, 4, 30))

        assert result.total_scheduled == 2
        assert result.total_completed == 2
        assert result.current_streak == 2

    def test_end_date_caps_range(self, stats: StatisticsEngine) -> None:
        """Completions after the end date are never counted."""
        rule = make_rule(JAN_1, end=EndsOnDate(end_date=jan(5)))
        completions = completed_range(jan(1), jan(10))

        result = stats.compute_rollup(rule, completions, jan(10))

        assert result.total_scheduled == 5
        assert result.total_completed == 5
        assert result.longest_streak == 5


class TestComputeRollupProperties:
    """General rollup invariants."""

    def test_nothing_scheduled_is_all_zeros(self, stats: StatisticsEngine) -> None:
        """A rule starting after today yields exact zeros and a 0.0 rate."""
        rule = make_rule(jan(20))

        result = stats.compute_rollup(rule, {jan(20): True}, jan(10))

        assert result == RollupResult(0, 0, 0, 0)
        assert result.completion_rate == 0.0
        assert result.completion_percentage == 0.0

    def test_empty_weekly_set_is_all_zeros(self, stats: StatisticsEngine) -> None:
        """No weekdays selected means nothing is ever scheduled."""
        rule = make_rule(JAN_1, pattern=WeeklyPattern(interval=1))
        assert stats.compute_rollup(rule, {}, jan(31)) == RollupResult()

    def test_inactive_rule_is_all_zeros(self, stats: StatisticsEngine) -> None:
        """Inactive rules never occur, so they roll up to zeros."""
        rule = make_rule(JAN_1, active=False)
        completions = completed_range(jan(1), jan(10))
        assert stats.compute_rollup(rule, completions, jan(10)) == RollupResult()

    @pytest.mark.parametrize(
        "skip",
        [
            set(),
            {jan(1)},
            {jan(10)},
            {jan(3), jan(4)},
            {jan(2), jan(5), jan(8)},
            {jan(d) for d in range(1, 11)},
        ],
    )
    def test_current_never_exceeds_longest(
        self,
        stats: StatisticsEngine,
        daily_rule: RecurrenceRule,
        skip: set[date],
    ) -> None:
        """current_streak <= longest_streak for any completion pattern."""
        completions = completed_range(jan(1), jan(10), skip=skip)

        result = stats.compute_rollup(daily_rule, completions, jan(10))

        assert result.current_streak <= result.longest_streak
        assert result.total_completed == 10 - len(skip)

    def test_trailing_miss_resets_current_streak(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """A miss on the last scheduled day leaves current_streak at 0."""
        completions = completed_range(jan(1), jan(9))

        result = stats.compute_rollup(daily_rule, completions, jan(10))

        assert result.current_streak == 0
        assert result.longest_streak == 9

    def test_unscheduled_days_do_not_break_rule_streak(
        self, stats: StatisticsEngine, mwf_rule: RecurrenceRule
    ) -> None:
        """Only the rule's own occurrences are walked."""
        completions = {jan(1): True, jan(3): True, jan(5): True}

        result = stats.compute_rollup(mwf_rule, completions, jan(6))

        assert result.current_streak == 3

    def test_false_entries_count_as_missed(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Explicit False behaves exactly like a missing entry."""
        explicit = {jan(1): True, jan(2): False, jan(3): True}
        sparse = {jan(1): True, jan(3): True}

        assert stats.compute_rollup(daily_rule, explicit, jan(3)) == (
            stats.compute_rollup(daily_rule, sparse, jan(3))
        )

    def test_rollup_is_repeatable(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Identical inputs give identical outputs."""
        completions = completed_range(jan(1), jan(10), skip={jan(4)})

        first = stats.compute_rollup(daily_rule, completions, jan(10))
        second = stats.compute_rollup(daily_rule, completions, jan(10))

        assert first == second

    def test_module_level_helper(self, daily_rule: RecurrenceRule) -> None:
        """compute_rollup() delegates to the engine."""
        result = compute_rollup(daily_rule, completed_range(jan(1), jan(3)), jan(3))
        assert result.total_completed == 3


class TestOneOffRollup:
    """One-off tasks roll up as a single occurrence."""

    def test_missing_task(self, stats: StatisticsEngine) -> None:
        """No task means nothing scheduled."""
        assert stats.compute_one_off_rollup(None, jan(5)) == RollupResult()

    def test_not_yet_due(self, stats: StatisticsEngine) -> None:
        """An open task due later is not scheduled yet."""
        task = OneOffTask(id="t1", due_date=jan(10))
        assert stats.compute_one_off_rollup(task, jan(5)) == RollupResult()

    def test_done_early_counts(self, stats: StatisticsEngine) -> None:
        """A task completed before its due date counts as one completion."""
        task = OneOffTask(id="t1", due_date=jan(10), completed=True)
        assert stats.compute_one_off_rollup(task, jan(5)) == RollupResult(1, 1, 1, 1)

    def test_overdue_open_task(self, stats: StatisticsEngine) -> None:
        """A past-due open task is one scheduled, zero completed."""
        task = OneOffTask(id="t1", due_date=jan(3))
        assert stats.compute_one_off_rollup(task, jan(5)) == RollupResult(1, 0, 0, 0)


# ============================================================================
# Cross-rule aggregate
# ============================================================================


@pytest.fixture
def first_week_completions() -> dict[str, dict[date, bool]]:
    """Daily misses Jan 2; Mon/Wed/Fri misses Jan 3."""
    return {
        "daily": completed_range(jan(1), jan(5), skip={jan(2)}),
        "mwf": {jan(1): True, jan(5): True},
    }


class TestAggregate:
    """Power days, global streak and stats rows."""

    def test_day_tallies(
        self,
        stats: StatisticsEngine,
        daily_rule: RecurrenceRule,
        mwf_rule: RecurrenceRule,
        first_week_completions: dict[str, dict[date, bool]],
    ) -> None:
        """Tallies sum occurrences per date across rules."""
        tallies = stats.build_day_tallies(
            [daily_rule, mwf_rule], first_week_completions, jan(5)
        )

        assert tallies == {
            jan(1): DayTally(scheduled=2, completed=2),
            jan(2): DayTally(scheduled=1, completed=0),
            jan(3): DayTally(scheduled=2, completed=1),
            jan(4): DayTally(scheduled=1, completed=1),
            jan(5): DayTally(scheduled=2, completed=2),
        }
        assert stats.count_power_days(tallies) == 3

    def test_aggregate_totals(
        self,
        stats: StatisticsEngine,
        daily_rule: RecurrenceRule,
        mwf_rule: RecurrenceRule,
        first_week_completions: dict[str, dict[date, bool]],
    ) -> None:
        """Totals, power days and global streak across two rules."""
        result = stats.aggregate(
            [mwf_rule, daily_rule], first_week_completions, jan(5)
        )

        assert result.total_scheduled == 8
        assert result.total_completed == 6
        assert result.overall_rate == 0.75
        assert result.overall_percentage == 75.0
        assert result.power_days == 3
        assert result.streak == 3

        daily_row, mwf_row = result.rows
        assert daily_row.id == "daily"
        assert daily_row.completed_count == 4
        assert daily_row.completion_rate == 0.8
        assert daily_row.longest_streak == 3
        assert mwf_row.id == "mwf"
        assert mwf_row.completed_count == 2
        assert mwf_row.longest_streak == 1

    def test_rows_sorted_by_title_case_insensitive(
        self, stats: StatisticsEngine
    ) -> None:
        """Rows are ordered by title ignoring case."""
        rules = [
            make_rule(JAN_1, rule_id="r1", title="feed cat"),
            make_rule(JAN_1, rule_id="r2", title="Brush teeth"),
            make_rule(JAN_1, rule_id="r3", title="water plants"),
        ]

        result = stats.aggregate(rules, {}, jan(2))

        assert [row.title for row in result.rows] == [
            "Brush teeth",
            "feed cat",
            "water plants",
        ]

    def test_inactive_rules_excluded(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Inactive rules contribute no rows and no tallies."""
        paused = make_rule(JAN_1, rule_id="paused", active=False)

        result = stats.aggregate([daily_rule, paused], {}, jan(3))

        assert [row.id for row in result.rows] == ["daily"]
        assert result.total_scheduled == 3

    def test_empty_aggregate(self, stats: StatisticsEngine) -> None:
        """No rules means zero totals and a 0.0 overall rate."""
        result = stats.aggregate([], {}, jan(3))

        assert result.rows == ()
        assert result.overall_rate == 0.0
        assert result.streak == 0
        assert result.power_days == 0

    def test_aggregate_logs_summary(
        self,
        stats: StatisticsEngine,
        daily_rule: RecurrenceRule,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A debug summary is logged on the package logger."""
        with caplog.at_level(logging.DEBUG, logger="todostats"):
            stats.aggregate([daily_rule], {}, jan(3))

        assert "Aggregated 1 rules" in caplog.text


class TestGlobalStreak:
    """Global streak skips unscheduled dates and dates after today."""

    def test_skips_future_and_unscheduled(self, stats: StatisticsEngine) -> None:
        """Jan 6 is after today and Jan 4 has nothing scheduled."""
        tallies = {
            jan(3): DayTally(scheduled=1, completed=1),
            jan(4): DayTally(scheduled=0, completed=0),
            jan(5): DayTally(scheduled=1, completed=1),
            jan(6): DayTally(scheduled=1, completed=0),
        }
        assert stats.compute_global_streak(tallies, jan(5)) == 2

    def test_breaks_on_scheduled_day_with_no_completion(
        self, stats: StatisticsEngine
    ) -> None:
        """A scheduled date with zero completions stops the walk."""
        tallies = {
            jan(3): DayTally(scheduled=1, completed=1),
            jan(4): DayTally(scheduled=2, completed=0),
            jan(5): DayTally(scheduled=1, completed=1),
        }
        assert stats.compute_global_streak(tallies, jan(5)) == 1

    def test_partial_day_extends_streak(self, stats: StatisticsEngine) -> None:
        """One completion out of several is enough for the global streak."""
        tallies = {
            jan(4): DayTally(scheduled=3, completed=1),
            jan(5): DayTally(scheduled=2, completed=2),
        }
        assert stats.compute_global_streak(tallies, jan(5)) == 2
        assert stats.count_power_days(tallies) == 1

    def test_empty_tallies(self, stats: StatisticsEngine) -> None:
        """Nothing scheduled anywhere gives a zero streak."""
        assert stats.compute_global_streak({}, jan(5)) == 0


class TestCountRemaining:
    """Open items for a single day."""

    def test_counts_open_rules_and_one_offs(
        self,
        stats: StatisticsEngine,
        daily_rule: RecurrenceRule,
        mwf_rule: RecurrenceRule,
    ) -> None:
        """Daily is open, Mon/Wed/Fri is done, one of two one-offs is open."""
        paused = make_rule(JAN_1, rule_id="paused", active=False)
        one_offs = [
            OneOffTask(id="t1", due_date=jan(3)),
            OneOffTask(id="t2", due_date=jan(3), completed=True),
            OneOffTask(id="t3", due_date=jan(4)),
        ]
        completions = {"mwf": {jan(3): True}}

        remaining = stats.count_remaining(
            [daily_rule, mwf_rule, paused], one_offs, completions, jan(3)
        )

        assert remaining == 2

    def test_nothing_scheduled(
        self, stats: StatisticsEngine, mwf_rule: RecurrenceRule
    ) -> None:
        """A day with no occurrences has nothing remaining."""
        assert stats.count_remaining([mwf_rule], [], {}, jan(2)) == 0


# ============================================================================
# Calendar grid
# ============================================================================


class TestClassifyDay:
    """Per-day status for rules and one-off tasks."""

    def test_rule_statuses(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """done / missed / future / none for a daily rule."""
        completions = {jan(5): True, jan(12): True}
        today = jan(10)

        assert stats.classify_day(daily_rule, jan(5), today, completions) == (
            const.DAY_STATUS_COMPLETED
        )
        assert stats.classify_day(daily_rule, jan(3), today, completions) == (
            const.DAY_STATUS_MISSED
        )
        assert stats.classify_day(daily_rule, jan(11), today, completions) == (
            const.DAY_STATUS_FUTURE
        )
        assert stats.classify_day(
            daily_rule, date(2023, 12, 31), today, completions
        ) == (const.DAY_STATUS_NOT_SCHEDULED)

    def test_done_wins_over_future(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """A future occurrence completed early shows as done."""
        status = stats.classify_day(daily_rule, jan(12), jan(10), {jan(12): True})
        assert status == const.DAY_STATUS_COMPLETED

    def test_today_not_done_is_missed(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Today itself is not in the future."""
        assert stats.classify_day(daily_rule, jan(10), jan(10)) == (
            const.DAY_STATUS_MISSED
        )

    def test_one_off_statuses(self, stats: StatisticsEngine) -> None:
        """A one-off task is only scheduled on its due date."""
        task = OneOffTask(id="t1", due_date=jan(10))

        assert stats.classify_day(task, jan(10), jan(5)) == const.DAY_STATUS_FUTURE
        assert stats.classify_day(task, jan(9), jan(5)) == (
            const.DAY_STATUS_NOT_SCHEDULED
        )
        assert stats.classify_day(task, jan(10), jan(12)) == const.DAY_STATUS_MISSED

    def test_statuses_are_known_labels(
        self, stats: StatisticsEngine, mwf_rule: RecurrenceRule
    ) -> None:
        """Every classified day uses one of the four labels."""
        statuses = stats.month_statuses(mwf_rule, 2024, 1, jan(15), {jan(3): True})

        assert list(statuses) == [jan(d) for d in range(1, 32)]
        assert set(statuses.values()) <= set(const.DAY_STATUSES)
        assert statuses[jan(3)] == const.DAY_STATUS_COMPLETED
        assert statuses[jan(2)] == const.DAY_STATUS_NOT_SCHEDULED


class TestMonthGrid:
    """Sunday-first month layout."""

    def test_january_2024_layout(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Jan 1 2024 is a Monday: one leading blank, five weeks."""
        grid = stats.month_grid(daily_rule, 2024, 1, jan(10))

        assert len(grid) == 5
        assert all(len(week) == 7 for week in grid)
        assert grid[0][0] is None
        assert grid[0][1] == (jan(1), const.DAY_STATUS_MISSED)
        assert grid[4][3] == (jan(31), const.DAY_STATUS_FUTURE)
        assert grid[4][4:] == [None, None, None]

    def test_february_2024_layout(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Feb 1 2024 is a Thursday: four leading blanks, leap day included."""
        grid = stats.month_grid(daily_rule, 2024, 2, jan(10))

        assert grid[0][:4] == [None, None, None, None]
        assert grid[0][4] == (date(2024, 2, 1), const.DAY_STATUS_FUTURE)
        cells = [cell for week in grid for cell in week if cell is not None]
        assert len(cells) == 29


class TestMonthSummary:
    """Month totals only count days up to today."""

    def test_current_month_excludes_future(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """Jan 1-15 scheduled, 9 of the first 10 completed."""
        completions = completed_range(jan(1), jan(10), skip={jan(5)})

        summary = stats.month_summary(daily_rule, 2024, 1, jan(15), completions)

        assert summary.scheduled == 15
        assert summary.completed == 9
        assert summary.completion_rate == pytest.approx(0.6)

    def test_future_month_is_empty(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """A month entirely after today has nothing to count."""
        summary = stats.month_summary(daily_rule, 2024, 2, jan(15))
        assert summary.scheduled == 0
        assert summary.completion_rate == 0.0

    def test_month_before_start_is_empty(
        self, stats: StatisticsEngine, daily_rule: RecurrenceRule
    ) -> None:
        """A month before the rule starts has no occurrences."""
        summary = stats.month_summary(daily_rule, 2023, 12, jan(15))
        assert summary.scheduled == 0

    def test_past_month_counts_whole_month(
        self, stats: StatisticsEngine, mwf_rule: RecurrenceRule
    ) -> None:
        """January 2024 has 14 Mon/Wed/Fri dates."""
        summary = stats.month_summary(mwf_rule, 2024, 1, date(2024, 3, 1))
        assert summary.scheduled == 14

    @pytest.mark.parametrize(
        ("year", "expected"), [(2024, 29), (2023, 28)]
    )
    def test_february_length(
        self, stats: StatisticsEngine, year: int, expected: int
    ) -> None:
        """A past February counts every day, leap day included."""
        rule = make_rule(date(2023, 1, 1))

        summary = stats.month_summary(rule, year, 2, date(2024, 6, 1))

        assert summary.scheduled == expected

    def test_one_off_summary(self, stats: StatisticsEngine) -> None:
        """A one-off task counts once in its due month, once due."""
        task = OneOffTask(id="t1", due_date=jan(10), completed=True)

        assert stats.month_summary(task, 2024, 1, jan(15)).completed == 1
        assert stats.month_summary(task, 2024, 1, jan(5)).scheduled == 0
        assert stats.month_summary(task, 2024, 2, date(2024, 3, 1)).scheduled == 0
