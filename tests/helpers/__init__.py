"""Test helpers for todostats.

Usage:
    from tests.helpers import completed_range, make_rule
"""

from .builders import completed_range, make_rule

__all__ = ["completed_range", "make_rule"]
