"""
Floating-rate engine: turns sub-period fixings into one effective period rate.

Conventions:
- one sub-period: the fixing times the index multiplier plus (or times) the
  spread, with cap/floor handled as option values on projected fixings;
- SIMPLE: sum of (fixing * m + c) * frac over sub-periods;
- ISDA / FLAT_ISDA: compounded recurrence

      C[i] = C[i-1] + (F[i] * m + c) * frac[i] + C[i-1] * (R[i] * m + c') * frac[i]

  where c' = c for ISDA and 0 for FLAT_ISDA, and R[i] is the fixing or the
  discount-curve rate when compounding on the discount curve.

The daily ISDA fast path replaces the loop by the end-to-end discount factor
as long as no sub-period has been observed yet.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass

from cashflows.dates import DayCount, Frequency, add_frequency, fraction
from cashflows.errors import UnsupportedConfigurationError
from cashflows.fixings import (
    CompoundingConvention,
    Fixing,
    FixingSchedule,
    RateResetState,
    SpreadType,
)
from cashflows.interfaces import ForwardAdjustment, RateProjector
from cashflows.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompoundingPeriod:
    start: dt.date
    end: dt.date
    fixing_schedule: FixingSchedule


@dataclass(frozen=True)
class RateComponents:
    """Effective rate split into forward, convexity and optionality parts."""

    forward: float
    convexity: float = 0.0
    optionality: float = 0.0
    state: RateResetState = RateResetState.NONE

    @property
    def total(self) -> float:
        return self.forward + self.convexity + self.optionality


def compound_power(x: float, n: float) -> float:
    """(1 + x)**n - 1, using a Taylor expansion when n*x is small."""
    if n > 10 and abs(n * x) < 0.1:
        return n * x * (1 + (n - 1) / 2 * x * (1 + (n - 2) / 3 * x * (
            1 + (n - 3) / 4 * x * (1 + (n - 4) / 5 * x * (
                1 + (n - 5) / 6 * x * (1 + (n - 6) / 7 * x * (
                    1 + (n - 7) / 8 * x * (1 + (n - 8) / 9 * x))))))))
    return (1 + x) ** n - 1


def _is_zero(x: float) -> bool:
    return abs(x) < 1e-14


def build_compounding_periods(
    projector: RateProjector,
    previous_pay_date: dt.date,
    period_start: dt.date,
    period_end: dt.date,
    pay_date: dt.date,
    frequency: Frequency,
    convention: CompoundingConvention,
    cycle_rule: int | None = None,
) -> list[CompoundingPeriod]:
    """
    Split [period_start, period_end] into compounding sub-periods.

    Without a convention or a frequency the whole period is one sub-period.
    The last sub-period is truncated at `period_end`.
    """
    if convention is CompoundingConvention.NONE or frequency is Frequency.NONE:
        schedule = projector.fixing_schedule(previous_pay_date, period_start, period_end, pay_date)
        return [CompoundingPeriod(period_start, period_end, schedule)]

    roll_day = cycle_rule
    if convention is not CompoundingConvention.SIMPLE and get_settings().no_cycle_rule_for_compounding:
        roll_day = None

    periods: list[CompoundingPeriod] = []
    start = period_start
    n = 0
    while start < period_end:
        n += 1
        if frequency is Frequency.DAILY:
            end = start + dt.timedelta(days=1)
        elif roll_day is not None:
            end = add_frequency(period_start, frequency, n, roll_day)
        else:
            end = add_frequency(period_start, frequency, n)
        end = min(end, period_end)
        schedule = projector.fixing_schedule(previous_pay_date, start, end, pay_date)
        periods.append(CompoundingPeriod(start, end, schedule))
        start = end
    if not periods:
        schedule = projector.fixing_schedule(previous_pay_date, period_start, period_end, pay_date)
        periods.append(CompoundingPeriod(period_start, period_end, schedule))
    logger.debug(
        "Built %d %s compounding periods for %s..%s",
        len(periods), frequency.name, period_start, period_end,
    )
    return periods


@dataclass(frozen=True)
class FloatingRateEngine:
    """
    Effective-rate calculator over a fixed list of compounding periods.

    `use_discount_rate` compounds projected sub-periods with the discount
    curve rate; `approximate_daily` enables the closed-form daily path.
    """

    pay_date: dt.date
    periods: tuple[CompoundingPeriod, ...]
    projector: RateProjector
    convention: CompoundingConvention = CompoundingConvention.NONE
    index_multiplier: float = 1.0
    use_discount_rate: bool = False
    approximate_daily: bool = False

    @property
    def day_count(self) -> DayCount:
        return getattr(self.projector, "day_count", DayCount.ACTUAL_360)

    def process(
        self,
        coupon: float,
        spread_type: SpreadType = SpreadType.ADDITIVE,
        forward_adjustment: ForwardAdjustment | None = None,
        cap: float | None = None,
        floor: float | None = None,
    ) -> RateComponents:
        multiplicative = spread_type is SpreadType.MULTIPLICATIVE and not _is_zero(coupon)

        if len(self.periods) > 1:
            c = 0.0 if multiplicative else coupon
            if self.convention in (CompoundingConvention.ISDA, CompoundingConvention.FLAT_ISDA):
                flat = self.convention is CompoundingConvention.FLAT_ISDA
                if self.approximate_daily:
                    result = self.approximate_compound(c, forward_adjustment, flat)
                else:
                    result = self.compound(c, forward_adjustment, flat, True)
            elif self.convention is CompoundingConvention.SIMPLE:
                result = self.compound(c, forward_adjustment, False, False)
            else:
                raise UnsupportedConfigurationError("Compounding convention not supported")
            if multiplicative:
                result = RateComponents(
                    forward=result.forward * coupon,
                    convexity=result.convexity * coupon,
                    state=result.state,
                )
            return result

        schedule = self.periods[0].fixing_schedule
        fixing = self.projector.fixing(schedule)
        if fixing.is_projected:
            return self.calc_simple(fixing, schedule, coupon, multiplicative, forward_adjustment, cap, floor)
        rate = self._apply_spread(fixing.forward, coupon, multiplicative)
        return RateComponents(forward=_clip(rate, cap, floor), state=fixing.state)

    def _apply_spread(self, forward: float, coupon: float, multiplicative: bool) -> float:
        if multiplicative:
            return coupon * forward * self.index_multiplier
        return forward * self.index_multiplier + coupon

    def calc_simple(
        self,
        fixing: Fixing,
        schedule: FixingSchedule,
        coupon: float,
        multiplicative: bool,
        forward_adjustment: ForwardAdjustment | None,
        cap: float | None,
        floor: float | None,
    ) -> RateComponents:
        """Single projected fixing, with convexity and collar option values."""
        m = self.index_multiplier
        rate = self._apply_spread(fixing.forward, coupon, multiplicative)
        if forward_adjustment is None:
            return RateComponents(forward=_clip(rate, cap, floor), state=fixing.state)

        fa = forward_adjustment
        optionality = 0.0
        if multiplicative:
            cpn = 1.0 if coupon == 0.0 else coupon
            mu = fa.convexity_adjustment(self.pay_date, schedule, fixing)
            convexity = cpn * mu * m
            if not _is_zero(m):
                if floor is not None:
                    optionality += cpn * m * fa.floor_value(schedule, fixing, floor / cpn / m, 0.0, mu)
                if cap is not None:
                    optionality += cpn * m * fa.cap_value(schedule, fixing, cap / cpn / m, 0.0, mu)
            return RateComponents(rate, convexity, optionality, fixing.state)

        convexity = fa.convexity_adjustment(self.pay_date, schedule, fixing)
        if not _is_zero(m):
            if floor is not None:
                optionality += m * fa.floor_value(schedule, fixing, floor / m, coupon / m, convexity)
            if cap is not None:
                optionality += m * fa.cap_value(schedule, fixing, cap / m, coupon / m, convexity)
        return RateComponents(rate, convexity * m, optionality, fixing.state)

    def compound(
        self,
        coupon: float,
        forward_adjustment: ForwardAdjustment | None,
        flat: bool,
        is_compound: bool,
    ) -> RateComponents:
        """Exact loop over every sub-period."""
        first, last = self.periods[0], self.periods[-1]
        period_frac = fraction(first.start, last.end, self.day_count)
        if period_frac <= 0.0:
            return RateComponents(forward=0.0)

        m = self.index_multiplier
        cross_spread = 0.0 if flat else coupon
        cmpn = 0.0
        expected = 0.0
        projected = False
        missing = False
        for period in self.periods:
            fixing = self.projector.fixing(period.fixing_schedule)
            is_projected = fixing.is_projected
            projected = projected or is_projected
            missing = missing or fixing.state is RateResetState.MISSING
            ca = 0.0
            if forward_adjustment is not None and is_projected:
                ca = forward_adjustment.convexity_adjustment(
                    self.pay_date, period.fixing_schedule, fixing
                )
            frac = fraction(period.start, period.end, self.day_count)
            if self.use_discount_rate and is_projected:
                rate = self.projector.discount_rate(period.start, period.end)
            else:
                rate = fixing.forward
            fwd = fixing.forward
            if is_compound:
                cmpn = cmpn + (fwd * m + coupon) * frac + cmpn * (rate * m + cross_spread) * frac
                expected = (
                    expected
                    + ((fwd + ca) * m + coupon) * frac
                    + expected * ((rate + ca) * m + cross_spread) * frac
                )
            else:
                cmpn += (fwd * m + coupon) * frac
                expected += ((fwd + ca) * m + coupon) * frac

        if missing:
            state = RateResetState.MISSING
        elif projected:
            state = RateResetState.IS_PROJECTED
        else:
            state = RateResetState.OBSERVATION_FOUND
        convexity = 0.0
        if forward_adjustment is not None and state is RateResetState.IS_PROJECTED:
            convexity = (expected - cmpn) / period_frac
        return RateComponents(forward=cmpn / period_frac, convexity=convexity, state=state)

    def approximate_compound(
        self,
        coupon: float,
        forward_adjustment: ForwardAdjustment | None,
        flat: bool,
    ) -> RateComponents:
        """Closed-form daily ISDA compounding from the end-to-end discount factor."""
        first, last = self.periods[0], self.periods[-1]
        observed = any(
            info.state is not RateResetState.IS_PROJECTED
            for info in self.projector.reset_info(first.fixing_schedule)
        )
        if observed:
            return self.compound(coupon, forward_adjustment, flat, True)

        begin, end = first.start, last.end
        period_frac = fraction(begin, end, self.day_count)
        days = (end - begin).days
        if period_frac <= 0.0 or days <= 0:
            return RateComponents(forward=0.0)

        m = self.index_multiplier
        df = self.projector.discount_factor(begin, end)
        daily = df ** (-1.0 / days) - 1.0
        if math.isclose(m, 1.0, rel_tol=1e-14) and (flat or abs(coupon) < 1e-16):
            cmpn = (1.0 / df - 1.0) / period_frac + coupon
        else:
            cmpn = compound_power(daily * m + coupon * period_frac / days, days) / period_frac

        convexity = 0.0
        if forward_adjustment is not None:
            ca = 0.5 * (
                forward_adjustment.convexity_adjustment(
                    self.pay_date, first.fixing_schedule, self.projector.fixing(first.fixing_schedule)
                )
                + forward_adjustment.convexity_adjustment(
                    self.pay_date, last.fixing_schedule, self.projector.fixing(last.fixing_schedule)
                )
            )
            if ca > 0.0:
                x = daily * m + ((0.0 if flat else coupon) + ca * m) * period_frac / days
                convexity = compound_power(x, days) / period_frac + (coupon if flat else 0.0) - cmpn
        logger.debug("Approximated daily compounding over %d days", days)
        return RateComponents(forward=cmpn, convexity=convexity, state=RateResetState.IS_PROJECTED)


def _clip(rate: float, cap: float | None, floor: float | None) -> float:
    if cap is not None:
        rate = min(rate, cap)
    if floor is not None:
        rate = max(rate, floor)
    return rate
