"""
Rate and price projection, and forward adjustments.

A projector answers two questions for a coupon sub-period:
- which observation is needed (`fixing_schedule`), and
- what its value is (`fixing`): a historical reset when the reset date is in
  the past, otherwise a forward projected from a curve.

Missing historical resets raise `MissingFixingError` unless the projector is
configured to project them, in which case the fixing is tagged MISSING.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, ClassVar

from scipy.stats import norm

from cashflows.curves import ZeroRateCurve, year_fraction
from cashflows.dates import DayCount, fraction
from cashflows.errors import MissingFixingError
from cashflows.fixings import (
    Fixing,
    FixingSchedule,
    RateResets,
    RateResetState,
    ResetInfo,
    find_reset,
)

logger = logging.getLogger(__name__)


class BaseProjector(ABC):
    """Shared reset lookup for projectors with `as_of`, `resets` and flags."""

    as_of: dt.date
    resets: RateResets
    use_as_of_resets: bool
    project_missing_resets: bool
    index_name: str

    supports_reset_date_override: ClassVar[bool] = False

    @abstractmethod
    def projected_value(self, schedule: FixingSchedule) -> float:
        """Forward value of a not-yet-observed fixing."""
        ...

    def fixing(self, schedule: FixingSchedule) -> Fixing:
        value, state = find_reset(
            self.as_of, schedule.reset_date, self.resets, self.use_as_of_resets
        )
        if state is RateResetState.IS_PROJECTED:
            return Fixing(self.projected_value(schedule), state)
        if state is RateResetState.MISSING:
            if not self.project_missing_resets:
                raise MissingFixingError(schedule.reset_date, self.index_name)
            logger.debug(
                "Projecting missing %s reset on %s", self.index_name, schedule.reset_date
            )
            return Fixing(self.projected_value(schedule), state)
        assert value is not None
        return Fixing(value, state)

    def reset_info(self, schedule: FixingSchedule) -> list[ResetInfo]:
        value, state = find_reset(
            self.as_of, schedule.reset_date, self.resets, self.use_as_of_resets
        )
        return [
            ResetInfo(
                reset_date=schedule.reset_date,
                value=value,
                state=state,
                accrual_start=schedule.start_date,
                accrual_end=schedule.end_date,
            )
        ]


@dataclass
class ForwardRateProjector(BaseProjector):
    """
    Projects simple forward rates of an index from its reference curve.

    - Reset date = sub-period start minus `reset_lag_days` calendar days.
    - `discount_curve` (if different from the reference) supplies the rate
      used for compounding when a floating coupon asks for it.
    - `approximate` enables the closed-form daily-compounding fast path.
    """

    as_of: dt.date
    reference_curve: ZeroRateCurve
    discount_curve: ZeroRateCurve | None = None
    day_count: DayCount = DayCount.ACTUAL_360
    resets: RateResets = field(default_factory=RateResets)
    reset_lag_days: int = 0
    use_as_of_resets: bool = False
    project_missing_resets: bool = False
    approximate: bool = False
    index_name: str = "RATE"

    supports_reset_date_override: ClassVar[bool] = True

    @property
    def reference_is_discount(self) -> bool:
        return self.discount_curve is None or self.discount_curve is self.reference_curve

    def fixing_schedule(
        self,
        previous_pay_date: dt.date,
        period_start: dt.date,
        period_end: dt.date,
        pay_date: dt.date,
    ) -> FixingSchedule:
        return FixingSchedule(
            reset_date=period_start - dt.timedelta(days=self.reset_lag_days),
            start_date=period_start,
            end_date=period_end,
            pay_date=pay_date,
        )

    def projected_value(self, schedule: FixingSchedule) -> float:
        return self.reference_curve.forward_rate(
            schedule.start_date, schedule.end_date, self.day_count
        )

    def discount_rate(self, start: dt.date, end: dt.date) -> float:
        """Simple forward rate implied by the discount curve."""
        curve = self.discount_curve or self.reference_curve
        return curve.forward_rate(start, end, self.day_count)

    def discount_factor(self, start: dt.date, end: dt.date) -> float:
        curve = self.discount_curve or self.reference_curve
        return curve.discount_factor(start, end)


@dataclass
class CommodityPriceProjector(BaseProjector):
    """Projects commodity prices observed on the sub-period end date."""

    as_of: dt.date
    forward_price: Callable[[dt.date], float]
    resets: RateResets = field(default_factory=RateResets)
    use_as_of_resets: bool = False
    project_missing_resets: bool = False
    index_name: str = "COMMODITY"

    def fixing_schedule(
        self,
        previous_pay_date: dt.date,
        period_start: dt.date,
        period_end: dt.date,
        pay_date: dt.date,
    ) -> FixingSchedule:
        return FixingSchedule(
            reset_date=period_end,
            start_date=period_start,
            end_date=period_end,
            pay_date=pay_date,
        )

    def projected_value(self, schedule: FixingSchedule) -> float:
        return self.forward_price(schedule.reset_date)


def _bachelier(forward: float, strike: float, std_dev: float, is_call: bool) -> float:
    """Undiscounted normal-model option value; intrinsic when std_dev is zero."""
    if std_dev <= 0.0:
        return max(forward - strike, 0.0) if is_call else max(strike - forward, 0.0)
    d = (forward - strike) / std_dev
    if is_call:
        return (forward - strike) * norm.cdf(d) + std_dev * norm.pdf(d)
    return (strike - forward) * norm.cdf(-d) + std_dev * norm.pdf(d)


@dataclass
class ForwardAdjustment:
    """
    Cap/floor value adjustments under a normal (Bachelier) model.

    `volatility` is the absolute (normal) volatility of the index. The
    convexity adjustment is zero: fixings pay at the natural end of their
    period. Cap values are returned with a negative sign so that
    `rate + floor_value + cap_value` is the collared rate.
    """

    as_of: dt.date
    volatility: float = 0.0

    def std_dev(self, schedule: FixingSchedule) -> float:
        t = max(year_fraction(self.as_of, schedule.reset_date), 0.0)
        return self.volatility * math.sqrt(t)

    def convexity_adjustment(
        self, pay_date: dt.date, schedule: FixingSchedule, fixing: Fixing
    ) -> float:
        return 0.0

    def cap_value(
        self,
        schedule: FixingSchedule,
        fixing: Fixing,
        strike: float,
        spread: float,
        convexity_adjustment: float,
    ) -> float:
        forward = fixing.forward + spread + convexity_adjustment
        return -_bachelier(forward, strike, self.std_dev(schedule), is_call=True)

    def floor_value(
        self,
        schedule: FixingSchedule,
        fixing: Fixing,
        strike: float,
        spread: float,
        convexity_adjustment: float,
    ) -> float:
        forward = fixing.forward + spread + convexity_adjustment
        return _bachelier(forward, strike, self.std_dev(schedule), is_call=False)


@dataclass
class InArrearsForwardAdjustment(ForwardAdjustment):
    """
    Adds the in-arrears convexity correction for coupons paid before the end
    of their fixing period: sigma^2 * tau * T / (1 + tau * F).
    """

    day_count: DayCount = DayCount.ACTUAL_360

    def convexity_adjustment(
        self, pay_date: dt.date, schedule: FixingSchedule, fixing: Fixing
    ) -> float:
        if pay_date >= schedule.end_date:
            return 0.0
        tau = fraction(schedule.start_date, schedule.end_date, self.day_count)
        t = max(year_fraction(self.as_of, schedule.reset_date), 0.0)
        return self.volatility**2 * tau * t / (1.0 + tau * fixing.forward)
