"""
Day-count and date-rolling helpers.

These are deliberately small, calendar-free building blocks:
- `fraction(start, end, day_count)` returns the accrual year fraction.
- `diff(start, end, day_count)` returns an integer day count (30/360 aware).
- `add(date, n, unit)` / `add_frequency(...)` roll dates with `relativedelta`,
  so month-end clipping follows dateutil's rules (Jan 31 + 1M = Feb 28/29).

Business-day adjustment and holiday calendars are not modelled here.
"""

from __future__ import annotations

import calendar
import datetime as dt
from enum import Enum

from dateutil.relativedelta import relativedelta


class DayCount(Enum):
    ACTUAL_360 = "ACT/360"
    ACTUAL_365_FIXED = "ACT/365F"
    ACTUAL_ACTUAL = "ACT/ACT"
    THIRTY_360 = "30/360"


class TimeUnit(Enum):
    NONE = "none"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class Frequency(Enum):
    """Payment/compounding frequency as (number, unit) of one period."""

    NONE = (0, TimeUnit.NONE)
    DAILY = (1, TimeUnit.DAYS)
    WEEKLY = (1, TimeUnit.WEEKS)
    MONTHLY = (1, TimeUnit.MONTHS)
    QUARTERLY = (3, TimeUnit.MONTHS)
    SEMI_ANNUAL = (6, TimeUnit.MONTHS)
    ANNUAL = (12, TimeUnit.MONTHS)

    @property
    def step(self) -> int:
        return self.value[0]

    @property
    def unit(self) -> TimeUnit:
        return self.value[1]


def _thirty_360_days(start: dt.date, end: dt.date) -> int:
    d1 = min(start.day, 30)
    d2 = end.day
    if d2 == 31 and d1 == 30:
        d2 = 30
    return 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)


def diff(start: dt.date, end: dt.date, day_count: DayCount | None = None) -> int:
    """Number of days from start to end (negative if end < start)."""
    if day_count is DayCount.THIRTY_360:
        return _thirty_360_days(start, end)
    return (end - start).days


def _days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def _actual_actual(start: dt.date, end: dt.date) -> float:
    # ISDA: split the period at year boundaries.
    if start.year == end.year:
        return (end - start).days / _days_in_year(start.year)
    total = (dt.date(start.year + 1, 1, 1) - start).days / _days_in_year(start.year)
    total += end.year - start.year - 1
    total += (end - dt.date(end.year, 1, 1)).days / _days_in_year(end.year)
    return total


def fraction(start: dt.date, end: dt.date, day_count: DayCount) -> float:
    """Accrual year fraction between two dates under the given day count."""
    if end < start:
        return -fraction(end, start, day_count)
    if day_count is DayCount.ACTUAL_360:
        return (end - start).days / 360.0
    if day_count is DayCount.ACTUAL_365_FIXED:
        return (end - start).days / 365.0
    if day_count is DayCount.THIRTY_360:
        return _thirty_360_days(start, end) / 360.0
    if day_count is DayCount.ACTUAL_ACTUAL:
        return _actual_actual(start, end)
    raise ValueError(f"Unsupported day count: {day_count}")


def add(date: dt.date, n: int, unit: TimeUnit) -> dt.date:
    """Add n units to a date (calendar arithmetic, no business-day roll)."""
    if unit is TimeUnit.NONE or n == 0:
        return date
    if unit is TimeUnit.DAYS:
        return date + dt.timedelta(days=n)
    if unit is TimeUnit.WEEKS:
        return date + dt.timedelta(weeks=n)
    if unit is TimeUnit.MONTHS:
        return date + relativedelta(months=n)
    if unit is TimeUnit.YEARS:
        return date + relativedelta(years=n)
    raise ValueError(f"Unsupported time unit: {unit}")


def add_frequency(
    date: dt.date,
    frequency: Frequency,
    n: int = 1,
    roll_day: int | None = None,
) -> dt.date:
    """
    Roll a date forward by n periods of the given frequency.

    `roll_day` pins the day-of-month for monthly-based frequencies (the cycle
    rule); it is clipped to the month length.
    """
    if frequency is Frequency.NONE:
        raise ValueError("Cannot roll a date with Frequency.NONE")
    rolled = add(date, frequency.step * n, frequency.unit)
    if roll_day is not None and frequency.unit is TimeUnit.MONTHS:
        rolled = rolled + relativedelta(day=roll_day)
    return rolled


def roll_periods(start: dt.date, end: dt.date, frequency: Frequency) -> list[tuple[dt.date, dt.date]]:
    """Periods rolled forward from `start`; the last one is cut at `end`."""
    if frequency is Frequency.NONE:
        return [(start, end)] if start < end else []
    periods = []
    begin = start
    n = 1
    while begin < end:
        stop = min(add_frequency(start, frequency, n), end)
        periods.append((begin, stop))
        begin = stop
        n += 1
    return periods


def earlier(a: dt.date, b: dt.date) -> dt.date:
    return a if a <= b else b


def later(a: dt.date, b: dt.date) -> dt.date:
    return a if a >= b else b
