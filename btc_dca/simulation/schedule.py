"""
Period arithmetic for DCA schedules.

Monthly periods are anchored on the start date: period n is start + n
months, clamped to the last day of the target month (pandas DateOffset
semantics). Jan 31 therefore runs Jan 31, Feb 29, Mar 31, Apr 30, ...
rather than drifting to the 29th after February.
"""

from datetime import date, timedelta
from typing import Iterator

import pandas as pd

from btc_dca.simulation.params import Frequency


def advance(day: date, frequency: Frequency, steps: int = 1) -> date:
    """Move ``day`` forward by ``steps`` periods."""
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    if Frequency(frequency) is Frequency.WEEKLY:
        return day + timedelta(weeks=steps)
    return (pd.Timestamp(day) + pd.DateOffset(months=steps)).date()


def period_date(start: date, frequency: Frequency, index: int) -> date:
    """Date of the ``index``-th period of a schedule beginning on ``start``."""
    return advance(start, frequency, steps=index)


def iter_schedule(start: date, frequency: Frequency, end: date) -> Iterator[date]:
    """Yield every period date from ``start`` through ``end`` inclusive."""
    index = 0
    day = start
    while day <= end:
        yield day
        index += 1
        day = period_date(start, frequency, index)

