"""Engine modules for todostats.

Contains the pure computation engines:
- schedule_engine: Occurrence tests, bounded enumeration and RRULE export
- statistics_engine: Rollups, streaks, power days and calendar grids
"""

from .schedule_engine import RecurrenceEngine, occurs_on
from .statistics_engine import StatisticsEngine, compute_rollup

__all__ = [
    "RecurrenceEngine",
    "StatisticsEngine",
    "compute_rollup",
    "occurs_on",
]
