"""
Lightweight cashflow nodes for simulation.

A node keeps only what is needed to recompute a payment's realised amount,
and does not reference the payment it was built from.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from cashflows.fixings import SpreadType
from cashflows.interfaces import DiscountFunction

if TYPE_CHECKING:
    from cashflows.payments.compounding import FloatingRateEngine


@dataclass(frozen=True, kw_only=True)
class _Node:
    pay_date: dt.date
    notional: float
    discount_fn: DiscountFunction
    survival_fn: DiscountFunction | None = None

    @property
    def amount(self) -> float:
        raise NotImplementedError

    def present_value(self) -> float:
        value = self.amount * self.discount_fn(self.pay_date)
        if self.survival_fn is not None:
            value *= self.survival_fn(self.pay_date)
        return value


@dataclass(frozen=True, kw_only=True)
class OneTimeCashflowNode(_Node):
    fixed_amount: float

    @property
    def amount(self) -> float:
        return self.fixed_amount * self.notional


@dataclass(frozen=True, kw_only=True)
class FixedCouponCashflowNode(_Node):
    coupon: float
    # accrual fraction times calculation principal
    accrual_factor: float

    @property
    def amount(self) -> float:
        return self.coupon * self.accrual_factor * self.notional


@dataclass(frozen=True, kw_only=True)
class FloatingCouponCashflowNode(_Node):
    """Re-runs the rate engine without adjustments and clips to the collar."""

    engine: FloatingRateEngine
    spread: float
    spread_type: SpreadType
    accrual_factor: float
    cap: float | None = None
    floor: float | None = None

    @property
    def rate(self) -> float:
        rate = self.engine.process(self.spread, self.spread_type).forward
        if self.cap is not None:
            rate = min(rate, self.cap)
        if self.floor is not None:
            rate = max(rate, self.floor)
        return rate

    @property
    def amount(self) -> float:
        return self.rate * self.accrual_factor * self.notional


CashflowNode = Union[OneTimeCashflowNode, FixedCouponCashflowNode, FloatingCouponCashflowNode]
