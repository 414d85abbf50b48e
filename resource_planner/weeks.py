from __future__ import annotations

import math
from datetime import date
from typing import List

from dateutil.relativedelta import MO, relativedelta


def week_start(value: date) -> date:
    """Return the Monday on or before ``value``."""
    return value + relativedelta(weekday=MO(-1))


def weeks_spanned(start: date, end: date) -> int:
    """Number of Monday-aligned weeks needed to tile the inclusive range [start, end].

    Never less than one, also when ``end`` precedes ``start``.
    """
    anchor = week_start(start)
    days = (end - anchor).days + 1
    if days <= 0:
        return 1
    return max(1, math.ceil(days / 7))


def week_starts(anchor: date, count: int) -> List[date]:
    if count <= 0:
        raise ValueError("week count must be positive")
    return [anchor + relativedelta(weeks=offset) for offset in range(count)]
