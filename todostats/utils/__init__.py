# File: utils/__init__.py
"""Pure Python utilities for todostats.

Submodules:
    - dt_utils: Timezone-naive calendar arithmetic and the clock adapter
    - math_utils: Safe ratios, percentages and interval normalization

Usage:
    from . import dt_utils
    from .math_utils import safe_ratio
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
