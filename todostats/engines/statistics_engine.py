"""Statistics Engine - completion rollups, streaks and calendar grids.

This engine turns a recurrence rule plus a sparse date→bool completion map
into the numbers the stats and calendar screens show:
- Per-rule rollups (scheduled, completed, current streak, longest streak)
- One-off task rollups (a schedule of exactly one occurrence)
- Cross-rule day tallies, power days and the global streak
- Per-day status classification and month summaries for calendar grids

Design Principles:
    - Stateless: No stored data, operates on passed data structures
    - Deterministic: "today" is always a parameter, the clock is never read
    - Sparse: a missing completion entry means "not completed"

Two streaks live here and must not be conflated:
    - Rule streak (compute_rollup) walks only the rule's own occurrences, so
      non-scheduled days never break it.
    - Global streak (compute_global_streak) walks calendar dates backwards
      from today across all rules; dates with nothing scheduled are skipped,
      and a date counts when at least one occurrence on it was completed.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..models import (
    AggregateStats,
    DayTally,
    MonthSummary,
    OneOffTask,
    RecurrenceRule,
    RollupResult,
    RuleStatsRow,
)
from ..utils.dt_utils import (
    DAYS_PER_WEEK,
    dt_last_day_of_month,
    dt_month_days,
    dt_weekday,
)
from .schedule_engine import RecurrenceEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    Completions = Mapping[date, bool]
    CompletionIndex = Mapping[str, Mapping[date, bool]]
    GridCell = tuple[date, str] | None


_NO_COMPLETIONS: dict[date, bool] = {}


class StatisticsEngine:
    """Stateless engine for completion statistics.

    This class provides methods to:
    - Roll up a single recurring rule or one-off task
    - Aggregate every rule into day tallies, power days and a global streak
    - Classify calendar days and summarize a visible month

    Example:
        stats = StatisticsEngine()

        rollup = stats.compute_rollup(rule, completions, today=date(2024, 1, 10))
        rollup.current_streak  # 5

        summary = stats.aggregate(rules, completions_by_rule, today)
        summary.power_days  # 3
    """

    # ────────────────────────────────────────────────────────────────
    # Single-rule rollup
    # ────────────────────────────────────────────────────────────────

    def compute_rollup(
        self,
        rule: RecurrenceRule,
        completions: Completions,
        today: date,
        day_tallies: dict[date, DayTally] | None = None,
    ) -> RollupResult:
        """Roll up a rule's occurrences from its start date to its effective end.

        The effective end is min(today, end date). Every occurrence in
        [start_date, effective_end] is visited in ascending order: a
        completed occurrence extends the current streak, a missed one resets
        it. The current streak is therefore the trailing run ending at the
        last scheduled date, which is not necessarily today.

        Args:
            rule: The recurrence rule.
            completions: Sparse date→bool map; absent dates are not completed.
            today: Reference date supplied by the caller.
            day_tallies: Optional per-date tallies to bump for every visited
                occurrence (used by the cross-rule aggregate).

        Returns:
            RollupResult; all zeros when nothing is scheduled in range.
        """
        engine = RecurrenceEngine(rule)
        effective_end = engine.effective_end(today)
        if effective_end < rule.start_date:
            return RollupResult()

        total_scheduled = 0
        total_completed = 0
        current_streak = 0
        longest_streak = 0

        for day in engine.iter_occurrences(rule.start_date, effective_end):
            total_scheduled += 1
            done = bool(completions.get(day, False))
            if done:
                total_completed += 1
                current_streak += 1
                longest_streak = max(longest_streak, current_streak)
            else:
                current_streak = 0

            if day_tallies is not None:
                tally = day_tallies.setdefault(day, DayTally())
                tally.scheduled += 1
                if done:
                    tally.completed += 1

        return RollupResult(
            total_scheduled=total_scheduled,
            total_completed=total_completed,
            current_streak=current_streak,
            longest_streak=longest_streak,
        )

    def compute_one_off_rollup(
        self, task: OneOffTask | None, today: date
    ) -> RollupResult:
        """Roll up a one-off task as a schedule with a single occurrence.

        A task that is not done and not yet due counts as nothing scheduled;
        otherwise it is one scheduled occurrence, completed (streak 1) or not
        (streak 0).
        """
        if task is None:
            return RollupResult()
        if task.due_date > today and not task.completed:
            return RollupResult()

        done = int(task.completed)
        return RollupResult(
            total_scheduled=1,
            total_completed=done,
            current_streak=done,
            longest_streak=done,
        )

    # ────────────────────────────────────────────────────────────────
    # Cross-rule aggregate
    # ────────────────────────────────────────────────────────────────

    def build_day_tallies(
        self,
        rules: Iterable[RecurrenceRule],
        completions_by_rule: CompletionIndex,
        today: date,
    ) -> dict[date, DayTally]:
        """Sum scheduled/completed occurrences per date across rules.

        Only dates on which at least one rule occurs appear in the result.
        """
        tallies: dict[date, DayTally] = {}
        for rule in rules:
            self.compute_rollup(
                rule,
                completions_by_rule.get(rule.id, _NO_COMPLETIONS),
                today,
                day_tallies=tallies,
            )
        return tallies

    def count_power_days(self, day_tallies: Mapping[date, DayTally]) -> int:
        """Count dates on which every scheduled occurrence was completed."""
        return sum(1 for tally in day_tallies.values() if tally.is_power_day)

    def compute_global_streak(
        self, day_tallies: Mapping[date, DayTally], today: date
    ) -> int:
        """Count consecutive scheduled dates, newest first, with any completion.

        Walks dates in descending order starting at today. Dates after today
        and dates with nothing scheduled are skipped without breaking the
        streak; the walk stops at the first scheduled date with zero
        completions.
        """
        streak = 0
        for day in sorted(day_tallies, reverse=True):
            if day > today:
                continue
            tally = day_tallies[day]
            if tally.scheduled == 0:
                continue
            if tally.completed > 0:
                streak += 1
            else:
                break
        return streak

    def aggregate(
        self,
        rules: Iterable[RecurrenceRule],
        completions_by_rule: CompletionIndex,
        today: date,
    ) -> AggregateStats:
        """Build the stats screen for every active rule.

        Inactive rules are left out of the table. Rows are sorted by title,
        case-insensitively.
        """
        day_tallies: dict[date, DayTally] = {}
        rows: list[RuleStatsRow] = []
        total_scheduled = 0
        total_completed = 0

        for rule in rules:
            if not rule.active:
                continue
            rollup = self.compute_rollup(
                rule,
                completions_by_rule.get(rule.id, _NO_COMPLETIONS),
                today,
                day_tallies=day_tallies,
            )
            rows.append(
                RuleStatsRow(
                    id=rule.id,
                    title=rule.title,
                    completed_count=rollup.total_completed,
                    completion_rate=rollup.completion_rate,
                    longest_streak=rollup.longest_streak,
                )
            )
            total_scheduled += rollup.total_scheduled
            total_completed += rollup.total_completed

        rows.sort(key=lambda row: (row.title.casefold(), row.id))

        power_days = self.count_power_days(day_tallies)
        streak = self.compute_global_streak(day_tallies, today)

        const.LOGGER.debug(
            "StatisticsEngine: Aggregated %d rules (%d/%d completed, %d power days,"
            " streak %d)",
            len(rows),
            total_completed,
            total_scheduled,
            power_days,
            streak,
        )

        return AggregateStats(
            rows=tuple(rows),
            total_scheduled=total_scheduled,
            total_completed=total_completed,
            power_days=power_days,
            streak=streak,
        )

    def count_remaining(
        self,
        rules: Iterable[RecurrenceRule],
        one_offs: Iterable[OneOffTask],
        completions_by_rule: CompletionIndex,
        day: date,
    ) -> int:
        """Count items still open on `day`.

        One-off tasks due that day and not done, plus rules occurring that
        day whose occurrence is not completed.
        """
        remaining = sum(
            1 for task in one_offs if task.due_date == day and not task.completed
        )
        for rule in rules:
            if not RecurrenceEngine(rule).occurs_on(day):
                continue
            completions = completions_by_rule.get(rule.id, _NO_COMPLETIONS)
            if not completions.get(day, False):
                remaining += 1
        return remaining

    # ────────────────────────────────────────────────────────────────
    # Calendar grid
    # ────────────────────────────────────────────────────────────────

    def classify_day(
        self,
        item: RecurrenceRule | OneOffTask,
        day: date,
        today: date,
        completions: Completions | None = None,
    ) -> str:
        """Classify one calendar day for a rule or a one-off task.

        Returns:
            DAY_STATUS_NOT_SCHEDULED if the item does not occur that day,
            DAY_STATUS_COMPLETED if it occurs and was completed (even when
            the day is in the future), DAY_STATUS_FUTURE if it occurs after
            today, otherwise DAY_STATUS_MISSED.
        """
        if isinstance(item, OneOffTask):
            scheduled = day == item.due_date
            done = item.completed
        else:
            scheduled = RecurrenceEngine(item).occurs_on(day)
            done = bool((completions or _NO_COMPLETIONS).get(day, False))

        if not scheduled:
            return const.DAY_STATUS_NOT_SCHEDULED
        if done:
            return const.DAY_STATUS_COMPLETED
        if day > today:
            return const.DAY_STATUS_FUTURE
        return const.DAY_STATUS_MISSED

    def month_statuses(
        self,
        item: RecurrenceRule | OneOffTask,
        year: int,
        month: int,
        today: date,
        completions: Completions | None = None,
    ) -> dict[date, str]:
        """Classify every day of a month, in ascending date order."""
        return {
            day: self.classify_day(item, day, today, completions)
            for day in dt_month_days(year, month)
        }

    def month_grid(
        self,
        item: RecurrenceRule | OneOffTask,
        year: int,
        month: int,
        today: date,
        completions: Completions | None = None,
    ) -> list[list[GridCell]]:
        """Lay a month out as Sunday-first weeks of (date, status) cells.

        Days outside the month are None, so every week has exactly 7 cells.
        """
        statuses = self.month_statuses(item, year, month, today, completions)
        cells: list[GridCell] = [None] * dt_weekday(date(year, month, 1))
        cells.extend(statuses.items())
        while len(cells) % DAYS_PER_WEEK:
            cells.append(None)
        return [
            cells[index : index + DAYS_PER_WEEK]
            for index in range(0, len(cells), DAYS_PER_WEEK)
        ]

    def month_summary(
        self,
        item: RecurrenceRule | OneOffTask,
        year: int,
        month: int,
        today: date,
        completions: Completions | None = None,
    ) -> MonthSummary:
        """Count scheduled and completed occurrences of a month up to today.

        Only the visible month is walked, never the rule's whole history.
        Occurrences after today are not counted.
        """
        first = date(year, month, 1)
        last = date(year, month, dt_last_day_of_month(year, month))
        upper = min(last, today)
        if upper < first:
            return MonthSummary()

        if isinstance(item, OneOffTask):
            if first <= item.due_date <= upper:
                return MonthSummary(scheduled=1, completed=int(item.completed))
            return MonthSummary()

        lookup = completions or _NO_COMPLETIONS
        scheduled = 0
        completed = 0
        for day in RecurrenceEngine(item).iter_occurrences(first, upper):
            scheduled += 1
            if lookup.get(day, False):
                completed += 1
        return MonthSummary(scheduled=scheduled, completed=completed)


# =============================================================================
# Module-level helpers
# =============================================================================


def compute_rollup(
    rule: RecurrenceRule, completions: Completions, today: date
) -> RollupResult:
    """Roll up a single rule. See StatisticsEngine.compute_rollup."""
    return StatisticsEngine().compute_rollup(rule, completions, today)
