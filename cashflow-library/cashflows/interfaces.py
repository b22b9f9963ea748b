"""
Protocol-based interfaces for all extension points in the cashflow library.

Using typing.Protocol enables structural subtyping: any class that implements
the required methods satisfies the protocol without explicit inheritance.
Curves, rate projectors, forward adjustments, pricers and risk measures can
all be swapped without modifying core code.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cashflows.dates import DayCount
    from cashflows.fixings import Fixing, FixingSchedule, ResetInfo
    from cashflows.market import Market


DiscountFunction = Callable[[dt.date], float]
"""A date -> factor callback: a discount factor or a survival probability."""


@runtime_checkable
class Curve(Protocol):
    """Protocol for discount and survival curve implementations.

    Any class implementing df(), interpolate() and bumped() can be stored in a
    Market and used for valuation.
    """

    name: str
    as_of: dt.date

    def df(self, t: float) -> float:
        """Return the factor to time t (year-fraction from the curve as-of)."""
        ...

    def interpolate(self, date: dt.date) -> float:
        """Return the factor to the given date."""
        ...

    def bumped(self, bump: float) -> Curve:
        """Return new curve with parallel additive rate shift."""
        ...


class RateProjector(Protocol):
    """Projects (or looks up) index fixings for accrual sub-periods."""

    as_of: dt.date
    use_as_of_resets: bool

    def fixing_schedule(
        self,
        previous_pay_date: dt.date,
        period_start: dt.date,
        period_end: dt.date,
        pay_date: dt.date,
    ) -> FixingSchedule:
        """Describe the observation needed for one sub-period."""
        ...

    def fixing(self, schedule: FixingSchedule) -> Fixing:
        """Return the forward value and reset state for the schedule."""
        ...

    def reset_info(self, schedule: FixingSchedule) -> list[ResetInfo]:
        """Return the reset components behind the fixing (never raises on missing)."""
        ...


class CompoundingRateProjector(RateProjector, Protocol):
    """A rate projector that can also drive multi-period compounding."""

    day_count: DayCount
    approximate: bool

    @property
    def reference_is_discount(self) -> bool:
        ...

    def discount_rate(self, start: dt.date, end: dt.date) -> float:
        """Simple rate over [start, end] implied by the discount curve."""
        ...

    def discount_factor(self, start: dt.date, end: dt.date) -> float:
        ...


class ForwardAdjustment(Protocol):
    """Convexity and cap/floor value adjustments for projected fixings."""

    as_of: dt.date

    def convexity_adjustment(
        self, pay_date: dt.date, schedule: FixingSchedule, fixing: Fixing
    ) -> float:
        ...

    def cap_value(
        self,
        schedule: FixingSchedule,
        fixing: Fixing,
        strike: float,
        spread: float,
        convexity_adjustment: float,
    ) -> float:
        """Signed rate adjustment of a cap at `strike` (<= 0)."""
        ...

    def floor_value(
        self,
        schedule: FixingSchedule,
        fixing: Fixing,
        strike: float,
        spread: float,
        convexity_adjustment: float,
    ) -> float:
        """Rate adjustment of a floor at `strike` (>= 0)."""
        ...


@runtime_checkable
class Instrument(Protocol):
    """Marker protocol for all priceable instruments.

    Instruments are data-only; pricing logic lives in Pricer implementations.
    """

    pass


class Pricer(Protocol):
    """Protocol for instrument pricing implementations."""

    def can_price(self, instrument: Instrument) -> bool:
        ...

    def npv(self, instrument: Instrument, market: Market) -> float:
        ...


class RiskMeasure(Protocol):
    """Protocol for risk measure implementations (bump-and-reprice)."""

    @property
    def name(self) -> str:
        ...

    def compute(self, instrument: Instrument, market: Market) -> float:
        ...
