"""
Small date and rounding helpers shared by the computation modules.
"""

import math
from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime]


def as_date(value: Optional[DateLike] = None) -> date:
    """Normalize an as-of value: None means today, datetimes are truncated."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))
