"""Shared fixtures for todostats tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest

from tests.helpers import make_rule
from todostats.engines.statistics_engine import StatisticsEngine
from todostats.models import RecurrenceRule, WeeklyPattern
from todostats.utils import dt_utils


@pytest.fixture
def stats() -> StatisticsEngine:
    """Return a StatisticsEngine instance."""
    return StatisticsEngine()


@pytest.fixture
def daily_rule() -> RecurrenceRule:
    """Daily rule starting Monday 2024-01-01."""
    return make_rule(date(2024, 1, 1), rule_id="daily", title="Make bed")


@pytest.fixture
def mwf_rule() -> RecurrenceRule:
    """Weekly Mon/Wed/Fri rule starting Monday 2024-01-01."""
    return make_rule(
        date(2024, 1, 1),
        pattern=WeeklyPattern(interval=1, days_of_week=frozenset({1, 3, 5})),
        rule_id="mwf",
        title="Practice piano",
    )


@pytest.fixture
def restore_timezone() -> Iterator[None]:
    """Restore the dt_utils default timezone after a test changes it."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)
