"""Boundary builders: raw realtime-database documents → immutable models.

This module is the SINGLE place where loosely-typed payloads are checked
and normalized before anything reaches the engines.

## Validation policy

Fail fast:
- Unparseable or impossible calendar dates (start, end, due date) raise
  `RuleValidationError`, carrying the payload field that failed.
- Unknown end types and missing ids raise `RuleValidationError`.

Lenient (existing stored data relies on it):
- A missing or malformed recurrence pattern falls back to daily, interval 1.
- Intervals are coerced to int and clamped to a minimum of 1.
- Weekly weekday entries outside 0..6 are dropped.
- Monthly fields default to dayOfMonth=1, nth=1, weekday=1 (Monday).
- Monthly fields of the mode not selected are ignored, whatever they hold.
- A missing end means the rule never ends; a missing start date means
  1970-01-01; `active` is False only when explicitly False.

## Completion documents

Completion state arrives in two shapes: a boolean `completed` field, or the
legacy per-user `completedBy` map where any True value means done.
`resolve_completed()` collapses both into one bool so the engines never see
the legacy form. Completion documents are folded into an explicit two-level
index (rule id → date → bool) by `build_completion_index()`.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from . import const
from .models import (
    DailyPattern,
    DayOfMonth,
    EndsOnDate,
    MonthlyPattern,
    NeverEnds,
    NthWeekday,
    OneOffTask,
    RecurrenceEnd,
    RecurrencePattern,
    RecurrenceRule,
    WeeklyPattern,
)
from .utils.dt_utils import (
    dt_coerce_date,
    dt_is_ymd,
    dt_parse_ymd,
    dt_weekday,
    get_default_timezone,
)
from .utils.math_utils import clamp_interval

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .type_defs import CompletionDocData, EndData, OneTodoData, SeriesData

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class RuleValidationError(Exception):
    """Validation error with field-specific information.

    Raised when a payload cannot be turned into a model. The `field`
    attribute names the payload key (a const.DATA_* value) so callers can
    surface the message next to the right input.

    Example:
        raise RuleValidationError(
            field=const.DATA_START_DATE,
            message="Invalid calendar date: '2023-02-29'",
        )
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize RuleValidationError.

        Args:
            field: The const.DATA_* key that failed validation
            message: Human-readable reason
        """
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


# ==============================================================================
# VALIDATORS
# ==============================================================================


def _validate_interval(value: Any) -> int:
    """Coerce an interval to int and clamp it to at least 1."""
    if value is None:
        return const.DEFAULT_INTERVAL
    if isinstance(value, bool):
        raise vol.Invalid(f"Invalid interval: {value!r}")
    try:
        interval = int(value)
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"Invalid interval: {value!r}") from err
    return clamp_interval(interval)


def _validate_weekdays(value: Any) -> frozenset[int]:
    """Normalize a weekday list, dropping entries outside 0..6."""
    if value is None:
        return frozenset()
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise vol.Invalid(f"Expected a list of weekdays, got {value!r}")

    days: set[int] = set()
    for raw in value:
        if isinstance(raw, int) and not isinstance(raw, bool) and 0 <= raw <= 6:
            days.add(raw)
        else:
            const.LOGGER.debug("Dropping invalid weekday %r", raw)
    return frozenset(days)


def _none_to_default(default: Any, validator: Any) -> Any:
    """Wrap a validator so an explicit None means "use the default".

    Monthly payloads carry null for the fields of the mode they do not use.
    """

    def _validate(value: Any) -> Any:
        if value is None:
            return default
        return validator(value)

    return _validate


_WEEKDAY = vol.All(vol.Coerce(int), vol.Range(min=const.SUNDAY, max=const.SATURDAY))
_MONTHLY_MODE = vol.In(
    [const.MONTHLY_MODE_DAY_OF_MONTH, const.MONTHLY_MODE_NTH_WEEKDAY]
)
_DAY_OF_MONTH = vol.All(vol.Coerce(int), vol.Range(min=1, max=31))
_NTH = vol.All(vol.Coerce(int), vol.In(const.NTH_VALUES))

DAILY_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PATTERN_TYPE): const.PATTERN_DAILY,
        vol.Optional(
            const.DATA_PATTERN_INTERVAL, default=const.DEFAULT_INTERVAL
        ): _validate_interval,
    },
    extra=vol.ALLOW_EXTRA,
)

WEEKLY_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PATTERN_TYPE): const.PATTERN_WEEKLY,
        vol.Optional(
            const.DATA_PATTERN_INTERVAL, default=const.DEFAULT_INTERVAL
        ): _validate_interval,
        vol.Optional(const.DATA_PATTERN_DAYS_OF_WEEK, default=list): _validate_weekdays,
    },
    extra=vol.ALLOW_EXTRA,
)

MONTHLY_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PATTERN_TYPE): const.PATTERN_MONTHLY,
        vol.Optional(
            const.DATA_PATTERN_INTERVAL, default=const.DEFAULT_INTERVAL
        ): _validate_interval,
        vol.Optional(
            const.DATA_PATTERN_MONTHLY_MODE, default=const.MONTHLY_MODE_DAY_OF_MONTH
        ): _none_to_default(const.MONTHLY_MODE_DAY_OF_MONTH, _MONTHLY_MODE),
    },
    extra=vol.ALLOW_EXTRA,
)

# Monthly payloads keep stale values for the mode they do not use, so each
# mode only validates its own fields.
DAY_OF_MONTH_MODE_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.DATA_PATTERN_DAY_OF_MONTH, default=const.DEFAULT_DAY_OF_MONTH
        ): _none_to_default(const.DEFAULT_DAY_OF_MONTH, _DAY_OF_MONTH),
    },
    extra=vol.ALLOW_EXTRA,
)

NTH_WEEKDAY_MODE_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.DATA_PATTERN_NTH, default=const.DEFAULT_NTH
        ): _none_to_default(const.DEFAULT_NTH, _NTH),
        vol.Optional(
            const.DATA_PATTERN_WEEKDAY, default=const.DEFAULT_WEEKDAY
        ): _none_to_default(const.DEFAULT_WEEKDAY, _WEEKDAY),
    },
    extra=vol.ALLOW_EXTRA,
)

PATTERN_SCHEMAS: dict[str, vol.Schema] = {
    const.PATTERN_DAILY: DAILY_PATTERN_SCHEMA,
    const.PATTERN_WEEKLY: WEEKLY_PATTERN_SCHEMA,
    const.PATTERN_MONTHLY: MONTHLY_PATTERN_SCHEMA,
}

MONTHLY_MODE_SCHEMAS: dict[str, vol.Schema] = {
    const.MONTHLY_MODE_DAY_OF_MONTH: DAY_OF_MONTH_MODE_SCHEMA,
    const.MONTHLY_MODE_NTH_WEEKDAY: NTH_WEEKDAY_MODE_SCHEMA,
}

END_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_END_TYPE): vol.In(
            [const.END_NEVER, const.END_ON_DATE]
        ),
        vol.Optional(const.DATA_END_DATE): vol.Any(None, str),
    },
    extra=vol.ALLOW_EXTRA,
)


def _parse_date_field(value: Any, field: str) -> date:
    """Parse a required YYYY-MM-DD payload field or raise RuleValidationError."""
    if not isinstance(value, str):
        raise RuleValidationError(
            field, f"Expected YYYY-MM-DD string, got {value!r}"
        )
    try:
        return dt_parse_ymd(value)
    except ValueError as err:
        raise RuleValidationError(field, str(err)) from err


def _validate_pattern(data: Any) -> dict[str, Any]:
    """Validate a pattern payload against the schema for its `type`.

    Monthly payloads are then validated against their selected mode only.

    Raises:
        vol.Invalid: Unknown type, or a field of the selected type/mode fails.
    """
    if not isinstance(data, dict):
        raise vol.Invalid(f"Expected a pattern mapping, got {type(data).__name__}")

    pattern_type = data.get(const.DATA_PATTERN_TYPE)
    schema = None
    if isinstance(pattern_type, str):
        schema = PATTERN_SCHEMAS.get(pattern_type)
    if schema is None:
        raise vol.Invalid(
            f"Unknown pattern type {pattern_type!r}", path=[const.DATA_PATTERN_TYPE]
        )

    validated = schema(data)
    if pattern_type == const.PATTERN_MONTHLY:
        mode_schema = MONTHLY_MODE_SCHEMAS[validated[const.DATA_PATTERN_MONTHLY_MODE]]
        validated = mode_schema(validated)
    return validated


# ==============================================================================
# PATTERN / END BUILDERS
# ==============================================================================


def build_pattern(data: Any) -> RecurrencePattern:
    """Build a recurrence pattern, falling back to daily/1 when malformed.

    Args:
        data: Raw pattern payload (PatternData-shaped dict), or None

    Returns:
        DailyPattern, WeeklyPattern or MonthlyPattern.

    Examples:
        build_pattern({"type": "daily", "interval": 0}) → DailyPattern(1)
        build_pattern({"type": "yearly"}) → DailyPattern(1)
        build_pattern(None) → DailyPattern(1)
    """
    if data is None:
        return DailyPattern(interval=const.DEFAULT_INTERVAL)

    try:
        validated = _validate_pattern(data)
    except vol.Invalid as err:
        const.LOGGER.warning(
            "Malformed recurrence pattern %r (%s), falling back to daily", data, err
        )
        return DailyPattern(interval=const.DEFAULT_INTERVAL)

    pattern_type = validated[const.DATA_PATTERN_TYPE]
    interval = validated[const.DATA_PATTERN_INTERVAL]

    if pattern_type == const.PATTERN_WEEKLY:
        return WeeklyPattern(
            interval=interval,
            days_of_week=validated[const.DATA_PATTERN_DAYS_OF_WEEK],
        )

    if pattern_type == const.PATTERN_MONTHLY:
        monthly_mode = validated[const.DATA_PATTERN_MONTHLY_MODE]
        if monthly_mode == const.MONTHLY_MODE_NTH_WEEKDAY:
            mode: DayOfMonth | NthWeekday = NthWeekday(
                nth=validated[const.DATA_PATTERN_NTH],
                weekday=validated[const.DATA_PATTERN_WEEKDAY],
            )
        else:
            mode = DayOfMonth(day=validated[const.DATA_PATTERN_DAY_OF_MONTH])
        return MonthlyPattern(interval=interval, mode=mode)

    return DailyPattern(interval=interval)


def build_end(data: EndData | None) -> RecurrenceEnd:
    """Build a recurrence end.

    Raises:
        RuleValidationError: Unknown end type, or onDate without a valid date.
    """
    if data is None:
        return NeverEnds()

    try:
        validated = END_SCHEMA(data)
    except vol.Invalid as err:
        raise RuleValidationError(const.DATA_END, str(err)) from err

    if validated[const.DATA_END_TYPE] == const.END_NEVER:
        return NeverEnds()

    return EndsOnDate(
        end_date=_parse_date_field(
            validated.get(const.DATA_END_DATE), const.DATA_END_DATE
        )
    )


# ==============================================================================
# ENTITY BUILDERS
# ==============================================================================


def build_rule(
    data: SeriesData | Mapping[str, Any], rule_id: str | None = None
) -> RecurrenceRule:
    """Build a RecurrenceRule from a series document.

    Args:
        data: SeriesData-shaped payload
        rule_id: Document id; overrides any "id" key inside the payload

    Returns:
        Immutable RecurrenceRule.

    Raises:
        RuleValidationError: Missing id, invalid start/end date, bad end type.
    """
    resolved_id = rule_id or data.get(const.DATA_ID)
    if not resolved_id:
        raise RuleValidationError(const.DATA_ID, "Recurring to-do has no id")

    raw_start = data.get(const.DATA_START_DATE)
    if raw_start is None:
        raw_start = const.DEFAULT_START_DATE

    return RecurrenceRule(
        id=str(resolved_id),
        title=str(data.get(const.DATA_TITLE) or ""),
        start_date=_parse_date_field(raw_start, const.DATA_START_DATE),
        end=build_end(data.get(const.DATA_END)),
        pattern=build_pattern(data.get(const.DATA_PATTERN)),
        active=data.get(const.DATA_ACTIVE) is not False,
    )


def build_one_off_task(
    data: OneTodoData | Mapping[str, Any], task_id: str | None = None
) -> OneOffTask:
    """Build a OneOffTask from a one-off to-do document.

    Raises:
        RuleValidationError: Missing id or invalid due date.
    """
    resolved_id = task_id or data.get(const.DATA_ID)
    if not resolved_id:
        raise RuleValidationError(const.DATA_ID, "To-do has no id")

    return OneOffTask(
        id=str(resolved_id),
        title=str(data.get(const.DATA_TITLE) or ""),
        due_date=_parse_date_field(
            data.get(const.DATA_DUE_DATE), const.DATA_DUE_DATE
        ),
        completed=resolve_completed(data),
    )


def build_series_pattern(
    recurrence_type: str,
    interval: int,
    days_of_week: Iterable[int],
    start_date: date,
    today: date,
) -> RecurrencePattern:
    """Build the pattern for a new recurring to-do from form inputs.

    Weekly rules with no weekday picked default to today's weekday; monthly
    rules repeat on the start date's day of month.
    """
    interval = clamp_interval(interval)

    if recurrence_type == const.PATTERN_WEEKLY:
        days = frozenset(d for d in days_of_week if d in const.WEEKDAYS)
        if not days:
            days = frozenset({dt_weekday(today)})
        return WeeklyPattern(interval=interval, days_of_week=days)

    if recurrence_type == const.PATTERN_MONTHLY:
        return MonthlyPattern(
            interval=interval, mode=DayOfMonth(day=start_date.day)
        )

    return DailyPattern(interval=interval)


# ==============================================================================
# COMPLETIONS
# ==============================================================================


def resolve_completed(data: Mapping[str, Any] | None) -> bool:
    """Resolve the done flag of a task or completion document.

    A boolean `completed` field wins; otherwise the legacy `completedBy`
    map counts as done when any value is True.
    """
    if not data:
        return False

    completed = data.get(const.DATA_COMPLETED)
    if isinstance(completed, bool):
        return completed

    completed_by = data.get(const.DATA_COMPLETED_BY)
    if isinstance(completed_by, dict):
        return any(bool(value) for value in completed_by.values())
    return False


def _date_from_value(value: Any) -> date | None:
    """Extract a calendar date from a string, date, datetime or timestamp."""
    if value is None:
        return None
    if isinstance(value, str):
        if not dt_is_ymd(value):
            return None
        try:
            return dt_parse_ymd(value)
        except ValueError:
            return None
    if isinstance(value, (date, datetime)):
        return dt_coerce_date(value)

    # Protobuf-style timestamps expose epoch seconds
    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)):
        return datetime.fromtimestamp(seconds, tz=get_default_timezone()).date()
    return None


def parse_completion_doc(
    doc_id: str, data: CompletionDocData | Mapping[str, Any] | None
) -> tuple[str, date, bool] | None:
    """Parse a series completion document into (rule id, date, done).

    The rule id comes from the `seriesId` field when present, else from the
    legacy document id "<seriesId>_<YYYY-MM-DD>" split on its LAST
    underscore (so rule ids may contain underscores). The date comes from
    the document id suffix when it is a valid date, else from the `date`
    field.

    Returns:
        Tuple, or None when no rule id or no date can be resolved.
    """
    payload = data or {}
    from_doc_series_id = str(payload.get(const.DATA_SERIES_ID) or "")
    from_doc_date = _date_from_value(payload.get(const.DATA_DATE))

    from_id_series = ""
    from_id_date: date | None = None
    separator = doc_id.rfind(const.COMPLETION_DOC_ID_SEPARATOR)
    if separator > 0:
        from_id_series = doc_id[:separator]
        from_id_date = _date_from_value(doc_id[separator + 1 :])

    rule_id = from_doc_series_id or from_id_series
    day = from_id_date or from_doc_date
    if not rule_id or day is None:
        const.LOGGER.debug("Skipping unparseable completion document %s", doc_id)
        return None

    return rule_id, day, resolve_completed(payload)


def build_completion_index(
    docs: Iterable[tuple[str, CompletionDocData | Mapping[str, Any] | None]],
) -> dict[str, dict[date, bool]]:
    """Fold completion documents into a rule id → date → done index.

    Args:
        docs: (document id, payload) pairs

    Returns:
        Two-level mapping; later documents for the same rule/date win.
    """
    index: dict[str, dict[date, bool]] = {}
    for doc_id, data in docs:
        parsed = parse_completion_doc(doc_id, data)
        if parsed is None:
            continue
        rule_id, day, done = parsed
        index.setdefault(rule_id, {})[day] = done
    return index
