"""
Interest-rate and credit curve primitives.

Curve math stays minimal and explicit:
- Each curve has an `as_of` date; times are **ACT/365F year fractions** from it.
- `df(t)` works in time, `interpolate(date)` works in dates; both return a
  discount factor (ZeroRateCurve) or a survival probability (credit curves).
- ZeroRateCurve: continuously compounded zero rates, linear in rate.
- HazardRateCurve: piecewise-constant hazard rates.
- SurvivalCurve: tabulated survival probabilities, log-linear in time.

Calibration and market conventions (calendars, bootstrapping) are out of scope;
valuation code only needs `interpolate(date)` as a date -> factor function.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field

from cashflows.dates import DayCount, fraction


def year_fraction(as_of: dt.date, date: dt.date) -> float:
    """Curve time of `date` measured from `as_of` (ACT/365F)."""
    return fraction(as_of, date, DayCount.ACTUAL_365_FIXED)


def _validate_pillars(pillars: list[float], values: list[float], label: str) -> None:
    if len(pillars) != len(values):
        raise ValueError(f"pillars and {label} must have the same length")
    for i in range(1, len(pillars)):
        if pillars[i] <= pillars[i - 1]:
            raise ValueError("pillars must be strictly increasing")


@dataclass
class ZeroRateCurve:
    """
    Zero rate curve (continuously compounded) with linear interpolation.

    - `pillars` are increasing times (year fractions from `as_of`).
    - `zero_rates_cc[i]` is the CC zero rate at `pillars[i]`.
    - Dates on or before `as_of` discount to 1.
    """

    name: str
    as_of: dt.date
    pillars: list[float]
    zero_rates_cc: list[float]

    def __post_init__(self) -> None:
        _validate_pillars(self.pillars, self.zero_rates_cc, "zero_rates_cc")

    def zero_rate_cc(self, t: float) -> float:
        """Continuously compounded zero rate at time t. t must be >= 0."""
        if t < 0:
            raise ValueError("t must be >= 0")
        if not self.pillars:
            raise ValueError("curve has no pillars")
        # Flat extrapolation beyond the end pillars.
        if t <= self.pillars[0]:
            return self.zero_rates_cc[0]
        if t >= self.pillars[-1]:
            return self.zero_rates_cc[-1]
        for i in range(len(self.pillars) - 1):
            if self.pillars[i] <= t <= self.pillars[i + 1]:
                t0, t1 = self.pillars[i], self.pillars[i + 1]
                r0, r1 = self.zero_rates_cc[i], self.zero_rates_cc[i + 1]
                return r0 + (r1 - r0) * (t - t0) / (t1 - t0)
        return self.zero_rates_cc[-1]

    def df(self, t: float) -> float:
        """Discount factor DF(t) = exp(-r(t)*t)."""
        if t <= 0:
            return 1.0
        return math.exp(-self.zero_rate_cc(t) * t)

    def interpolate(self, date: dt.date) -> float:
        """Discount factor from `as_of` to `date`."""
        return self.df(year_fraction(self.as_of, date))

    def discount_factor(self, start: dt.date, end: dt.date) -> float:
        """Forward discount factor from `start` to `end`."""
        return self.interpolate(end) / self.interpolate(start)

    def forward_rate(self, start: dt.date, end: dt.date, day_count: DayCount) -> float:
        """
        Simple forward rate over [start, end] under `day_count`.

        For a degenerate period the instantaneous zero rate at `start` is returned.
        """
        tau = fraction(start, end, day_count)
        if tau <= 0:
            return self.zero_rate_cc(max(year_fraction(self.as_of, start), 0.0))
        return (1.0 / self.discount_factor(start, end) - 1.0) / tau

    def bumped(self, bump: float) -> "ZeroRateCurve":
        """Return a new curve with a parallel additive shift (1bp = 0.0001)."""
        return ZeroRateCurve(
            name=self.name,
            as_of=self.as_of,
            pillars=list(self.pillars),
            zero_rates_cc=[r + bump for r in self.zero_rates_cc],
        )


@dataclass
class HazardRateCurve:
    """
    Hazard rate curve with piecewise-constant hazard between pillars.

    `df(t)` returns the survival probability S(t), not a discount factor.
    hazard_rates[i] applies on (pillars[i-1], pillars[i]] with pillars[-1] = 0,
    and the last hazard is extrapolated flat. `jump_date` marks a credit event
    that has already been observed.
    """

    name: str
    as_of: dt.date
    pillars: list[float]
    hazard_rates: list[float]
    jump_date: dt.date | None = None

    def __post_init__(self) -> None:
        _validate_pillars(self.pillars, self.hazard_rates, "hazard_rates")

    def hazard_rate(self, t: float) -> float:
        """Piecewise-constant hazard at time t. Flat extrapolation beyond endpoints."""
        if t < 0:
            raise ValueError("t must be >= 0")
        if not self.pillars:
            raise ValueError("curve has no pillars")
        if t <= self.pillars[0]:
            return self.hazard_rates[0]
        if t >= self.pillars[-1]:
            return self.hazard_rates[-1]
        for i in range(len(self.pillars) - 1):
            if self.pillars[i] < t <= self.pillars[i + 1]:
                return self.hazard_rates[i + 1]
        return self.hazard_rates[-1]

    def df(self, t: float) -> float:
        """Survival probability S(t) = exp(-integral_0^t h(u) du)."""
        if t <= 0:
            return 1.0
        if not self.pillars:
            raise ValueError("curve has no pillars")
        integral = 0.0
        prev = 0.0
        for i in range(len(self.pillars)):
            t_end = min(self.pillars[i], t)
            if t_end > prev:
                integral += self.hazard_rates[i] * (t_end - prev)
            prev = self.pillars[i]
            if prev >= t:
                break
        if t > self.pillars[-1]:
            integral += self.hazard_rates[-1] * (t - self.pillars[-1])
        return math.exp(-integral)

    def interpolate(self, date: dt.date) -> float:
        return self.df(year_fraction(self.as_of, date))

    def bumped(self, bump: float) -> "HazardRateCurve":
        """Return new curve with parallel additive shift to all hazard rates."""
        return HazardRateCurve(
            name=self.name,
            as_of=self.as_of,
            pillars=list(self.pillars),
            hazard_rates=[h + bump for h in self.hazard_rates],
            jump_date=self.jump_date,
        )


@dataclass
class SurvivalCurve:
    """
    Survival probabilities tabulated on dates, log-linear in time.

    Between `as_of` (S = 1) and the first date, and between consecutive dates,
    log S is linear in time; beyond the last date the last segment's hazard
    rate is extrapolated. A zero survival value stays zero afterwards.
    """

    name: str
    as_of: dt.date
    dates: list[dt.date] = field(default_factory=list)
    survival_probabilities: list[float] = field(default_factory=list)
    jump_date: dt.date | None = None

    def __post_init__(self) -> None:
        if len(self.dates) != len(self.survival_probabilities):
            raise ValueError("dates and survival_probabilities must have the same length")
        prev = self.as_of
        for d in self.dates:
            if d <= prev:
                raise ValueError("dates must be strictly increasing and after as_of")
            prev = d
        for sp in self.survival_probabilities:
            if sp < 0.0:
                raise ValueError("survival probabilities must be >= 0")

    def add(self, date: dt.date, survival_probability: float) -> None:
        """Append a point; dates must be added in increasing order."""
        if date <= (self.dates[-1] if self.dates else self.as_of):
            raise ValueError("dates must be strictly increasing and after as_of")
        if survival_probability < 0.0:
            raise ValueError("survival probabilities must be >= 0")
        self.dates.append(date)
        self.survival_probabilities.append(survival_probability)

    def _times(self) -> list[float]:
        return [year_fraction(self.as_of, d) for d in self.dates]

    def df(self, t: float) -> float:
        if t <= 0 or not self.dates:
            return 1.0
        times = self._times()
        t0, s0 = 0.0, 1.0
        for t1, s1 in zip(times, self.survival_probabilities):
            if t <= t1:
                return _log_linear(t0, s0, t1, s1, t)
            t0, s0 = t1, s1
        if len(times) == 1:
            return _log_linear(0.0, 1.0, times[0], self.survival_probabilities[0], t)
        return _log_linear(times[-2], self.survival_probabilities[-2], t0, s0, t)

    def interpolate(self, date: dt.date) -> float:
        return self.df(year_fraction(self.as_of, date))

    def bumped(self, bump: float) -> "SurvivalCurve":
        """Return new curve with a parallel hazard shift of `bump`."""
        return SurvivalCurve(
            name=self.name,
            as_of=self.as_of,
            dates=list(self.dates),
            survival_probabilities=[
                sp * math.exp(-bump * t)
                for sp, t in zip(self.survival_probabilities, self._times())
            ],
            jump_date=self.jump_date,
        )


def _log_linear(t0: float, s0: float, t1: float, s1: float, t: float) -> float:
    if s0 <= 0.0 or s1 <= 0.0:
        return 0.0 if t > t0 or s0 <= 0.0 else s0
    w = (t - t0) / (t1 - t0)
    return math.exp((1.0 - w) * math.log(s0) + w * math.log(s1))
