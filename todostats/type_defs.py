"""Type definitions for raw todostats document payloads.

These TypedDicts describe the shape of documents as they arrive from the
realtime database layer, before `data_builders` turns them into the frozen
models in `models.py`. They are STATIC ANALYSIS ONLY: nothing here is
enforced at runtime, and every field may be missing or malformed in
practice. Runtime checks live in `data_builders`.

IMPORTANT: This file must NOT import from engines or builders.
"""

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

RuleId = str  # Opaque series/document id
TaskId = str  # Opaque one-off task id
ISODate = str  # ISO 8601 date string (no time) "2024-01-18"


# =============================================================================
# Recurrence payloads
# =============================================================================


class PatternData(TypedDict):
    """Recurrence pattern payload.

    `type` selects which of the optional fields are meaningful.
    """

    type: str  # "daily" | "weekly" | "monthly"
    interval: NotRequired[int]
    daysOfWeek: NotRequired[list[int]]  # 0=Sunday .. 6=Saturday
    monthlyMode: NotRequired[str]  # "dayOfMonth" | "nthWeekday"
    dayOfMonth: NotRequired[int]  # 1..31
    nth: NotRequired[int]  # 1..4 or -1
    weekday: NotRequired[int]  # 0..6


class EndData(TypedDict):
    """Recurrence end payload."""

    type: str  # "never" | "onDate"
    endDate: NotRequired[ISODate]


class SeriesData(TypedDict):
    """Recurring to-do ("series") document."""

    id: NotRequired[RuleId]
    title: NotRequired[str]
    startDate: NotRequired[ISODate]
    end: NotRequired[EndData]
    pattern: NotRequired[PatternData]
    active: NotRequired[bool]


# =============================================================================
# Task and completion payloads
# =============================================================================


class OneTodoData(TypedDict):
    """One-off to-do document.

    `completedBy` is the legacy per-user map; any True value means done.
    """

    id: NotRequired[TaskId]
    title: NotRequired[str]
    dueDate: ISODate
    completed: NotRequired[bool]
    completedBy: NotRequired[dict[str, bool]]


class CompletionDocData(TypedDict):
    """Per-date completion document for a series occurrence.

    `date` may be an ISO string or a date/datetime-like value.
    """

    seriesId: NotRequired[RuleId]
    date: NotRequired[Any]
    completed: NotRequired[bool]
    completedBy: NotRequired[dict[str, bool]]
