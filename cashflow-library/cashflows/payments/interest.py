"""
Interest-period payments.

An interest payment accrues `effective_rate * principal * accrual_factor`
over [accrual_start, accrual_end). Fixed and floating coupons differ only
in how the effective rate is obtained.
"""

from __future__ import annotations

import datetime as dt
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, ClassVar

from cashflows.dates import DayCount, Frequency, fraction
from cashflows.errors import InvalidArgumentError
from cashflows.interfaces import DiscountFunction
from cashflows.payments.base import DEFAULT_DATE_FORMAT, Payment, PaymentKind
from cashflows.payments.nodes import FixedCouponCashflowNode
from cashflows.settings import get_settings


@dataclass(kw_only=True, eq=False)
class InterestPayment(Payment):
    """
    Coupon accruing over an accrual period.

    - `previous_pay_date`, `cycle_start`, `cycle_end` default to the accrual dates.
    - `accrued_fraction_at_default` (in [0, 1]) weights survival at the accrual
      start against survival at the credit-risk end in `risky_discount`.
    - `principal_calculator` replaces `notional` as the calculation principal;
      it is how interest-on-interest compounding across payments is wired.
    """

    accrual_start: dt.date
    accrual_end: dt.date
    previous_pay_date: dt.date | None = None
    cycle_start: dt.date | None = None
    cycle_end: dt.date | None = None
    ex_dividend_date: dt.date | None = None
    notional: float = 1.0
    day_count: DayCount = DayCount.ACTUAL_360
    compounding_frequency: Frequency = Frequency.NONE
    cycle_rule: int | None = None
    accrued_fraction_at_default: float = 0.0
    accrue_on_cycle: bool = False
    include_end_date_in_accrual: bool = False
    include_end_date_protection: bool = False
    accrual_factor_override: float | None = None
    principal_calculator: Callable[[], float] | None = None

    def __post_init__(self) -> None:
        if self.accrual_end < self.accrual_start:
            raise InvalidArgumentError("accrual_end must not be before accrual_start")
        if not 0.0 <= self.accrued_fraction_at_default <= 1.0:
            raise InvalidArgumentError("accrued_fraction_at_default must be in [0, 1]")
        if self.previous_pay_date is None:
            self.previous_pay_date = self.accrual_start
        if self.cycle_start is None:
            self.cycle_start = self.accrual_start
        if self.cycle_end is None:
            self.cycle_end = self.accrual_end

    @property
    @abstractmethod
    def effective_rate(self) -> float:
        ...

    @property
    def period_end_date(self) -> dt.date:
        return self.accrual_end

    @property
    def accrual_factor(self) -> float:
        if self.accrual_factor_override is not None:
            return self.accrual_factor_override
        end = self.accrual_end
        if self.include_end_date_in_accrual:
            end = end + dt.timedelta(days=1)
        return fraction(self.accrual_start, end, self.day_count)

    @accrual_factor.setter
    def accrual_factor(self, value: float | None) -> None:
        self.accrual_factor_override = value

    @property
    def calculation_principal(self) -> float:
        if self.principal_calculator is not None:
            return self.principal_calculator()
        return self.notional

    def compute_amount(self) -> float:
        return self.effective_rate * self.calculation_principal * self.accrual_factor

    def accrued(self, as_of: dt.date) -> tuple[float, float]:
        amount = self.amount
        if as_of <= self.accrual_start:
            return 0.0, amount
        if as_of >= self.accrual_end:
            return amount, 0.0
        full = fraction(self.accrual_start, self.accrual_end, self.day_count)
        if full <= 0.0:
            return 0.0, amount
        accrued = amount * fraction(self.accrual_start, as_of, self.day_count) / full
        return accrued, amount - accrued

    def protection_end_date(self) -> dt.date:
        end = self.credit_risk_end_date
        if self.include_end_date_protection:
            end = end + dt.timedelta(days=get_settings().end_date_protection_days)
        return end

    def risky_discount(
        self,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> float:
        df = discount_fn(self.pay_date)
        if survival_fn is None:
            return df
        sp_end = survival_fn(self.protection_end_date())
        delta = self.accrued_fraction_at_default
        if delta == 0.0:
            return df * sp_end
        sp_begin = survival_fn(self.accrual_start)
        return df * (delta * sp_begin + (1.0 - delta) * sp_end)

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.notional *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + [
            "Period Start",
            "Period End",
            "Notional",
            "Accrual Factor",
        ]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values.update(
            {
                "Period Start": self.accrual_start.strftime(date_format),
                "Period End": self.accrual_end.strftime(date_format),
                "Notional": self.notional,
                "Accrual Factor": self.accrual_factor,
            }
        )
        return values


@dataclass(kw_only=True, eq=False)
class FixedInterestPayment(InterestPayment):
    """
    Fixed coupon.

    `coupon_schedule` holds (effective_date, rate) steps; when given, the
    effective rate is the day-weighted average over the accrual period, with
    `coupon` applying before the first step.
    """

    kind: ClassVar[PaymentKind] = PaymentKind.FIXED_INTEREST

    coupon: float = 0.0
    coupon_schedule: list[tuple[dt.date, float]] | None = None

    @property
    def effective_rate(self) -> float:
        if not self.coupon_schedule:
            return self.coupon
        start, end = self.accrual_start, self.accrual_end
        total_days = (end - start).days
        if total_days <= 0:
            return self._rate_on(start)
        steps = sorted(self.coupon_schedule)
        points = [start] + [d for d, _ in steps if start < d < end] + [end]
        weighted = 0.0
        for a, b in zip(points[:-1], points[1:]):
            weighted += self._rate_on(a) * (b - a).days
        return weighted / total_days

    def _rate_on(self, date: dt.date) -> float:
        rate = self.coupon
        for step_date, step_rate in sorted(self.coupon_schedule or []):
            if step_date > date:
                break
            rate = step_rate
        return rate

    def to_cashflow_node(
        self,
        notional: float,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> FixedCouponCashflowNode:
        return FixedCouponCashflowNode(
            pay_date=self.pay_date,
            notional=notional,
            discount_fn=discount_fn,
            survival_fn=survival_fn,
            coupon=self.effective_rate,
            accrual_factor=self.accrual_factor * self.calculation_principal,
        )

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Coupon", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Coupon"] = self.effective_rate
        values["Amount"] = self.amount
        return values
