# File: const.py
"""Constants for todostats.

This file centralizes payload keys, pattern discriminants, defaults and day
status labels so builders, engines and tests agree on the same strings.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Recurrence Pattern Types
# ------------------------------------------------------------------------------------------------
PATTERN_DAILY = "daily"
PATTERN_WEEKLY = "weekly"
PATTERN_MONTHLY = "monthly"

MONTHLY_MODE_DAY_OF_MONTH = "dayOfMonth"
MONTHLY_MODE_NTH_WEEKDAY = "nthWeekday"

# Recurrence end types
END_NEVER = "never"
END_ON_DATE = "onDate"

# Nth-weekday values (1..4, or -1 for the last occurrence in the month)
NTH_LAST = -1
NTH_VALUES = [1, 2, 3, 4, NTH_LAST]

# Weekdays, 0=Sunday
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6
WEEKDAYS = range(SUNDAY, SATURDAY + 1)

# RFC 5545 weekday codes indexed by Sunday-0 weekday
RRULE_WEEKDAY_CODES = ["SU", "MO", "TU", "WE", "TH", "FR", "SA"]

# ------------------------------------------------------------------------------------------------
# Raw Document Keys (realtime database payloads)
# ------------------------------------------------------------------------------------------------
DATA_ID = "id"
DATA_TITLE = "title"
DATA_ACTIVE = "active"
DATA_START_DATE = "startDate"
DATA_END = "end"
DATA_END_TYPE = "type"
DATA_END_DATE = "endDate"
DATA_PATTERN = "pattern"
DATA_PATTERN_TYPE = "type"
DATA_PATTERN_INTERVAL = "interval"
DATA_PATTERN_DAYS_OF_WEEK = "daysOfWeek"
DATA_PATTERN_MONTHLY_MODE = "monthlyMode"
DATA_PATTERN_DAY_OF_MONTH = "dayOfMonth"
DATA_PATTERN_NTH = "nth"
DATA_PATTERN_WEEKDAY = "weekday"

DATA_DUE_DATE = "dueDate"
DATA_COMPLETED = "completed"
DATA_COMPLETED_BY = "completedBy"

DATA_SERIES_ID = "seriesId"
DATA_DATE = "date"

# Separator used by legacy completion document ids: "<seriesId>_<YYYY-MM-DD>"
COMPLETION_DOC_ID_SEPARATOR = "_"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_START_DATE = "1970-01-01"
DEFAULT_INTERVAL = 1
DEFAULT_DAY_OF_MONTH = 1
DEFAULT_NTH = 1
DEFAULT_WEEKDAY = MONDAY

# ------------------------------------------------------------------------------------------------
# Day Status (calendar grid classification)
# ------------------------------------------------------------------------------------------------
DAY_STATUS_NOT_SCHEDULED = "none"
DAY_STATUS_COMPLETED = "done"
DAY_STATUS_MISSED = "missed"
DAY_STATUS_FUTURE = "future"

DAY_STATUSES = [
    DAY_STATUS_NOT_SCHEDULED,
    DAY_STATUS_COMPLETED,
    DAY_STATUS_MISSED,
    DAY_STATUS_FUTURE,
]
