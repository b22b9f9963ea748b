"""One-time payments: fixed amounts, principal exchanges, fees and settlements."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, ClassVar

from cashflows.fixings import FixingSchedule
from cashflows.interfaces import DiscountFunction, RateProjector
from cashflows.payments.base import DEFAULT_DATE_FORMAT, Payment, PaymentKind
from cashflows.payments.nodes import OneTimeCashflowNode


@dataclass(kw_only=True, eq=False)
class OneTimePayment(Payment):
    """A payment of a fixed amount on its pay date."""

    fixed_amount: float = 0.0

    def compute_amount(self) -> float:
        return self.fixed_amount

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.fixed_amount *= factor

    def to_cashflow_node(
        self,
        notional: float,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> OneTimeCashflowNode:
        return OneTimeCashflowNode(
            pay_date=self.pay_date,
            notional=notional,
            discount_fn=discount_fn,
            survival_fn=survival_fn,
            fixed_amount=self.compute_amount(),
        )

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Amount"] = self.amount
        return values


@dataclass(kw_only=True, eq=False)
class BasicPayment(OneTimePayment):
    kind: ClassVar[PaymentKind] = PaymentKind.BASIC


@dataclass(kw_only=True, eq=False)
class UpfrontFee(OneTimePayment):
    """Fee paid regardless of default: discounted without survival."""

    kind: ClassVar[PaymentKind] = PaymentKind.UPFRONT_FEE

    def risky_discount(
        self,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> float:
        return discount_fn(self.pay_date)


@dataclass(kw_only=True, eq=False)
class BulletBonusPayment(OneTimePayment):
    kind: ClassVar[PaymentKind] = PaymentKind.BULLET_BONUS


@dataclass(kw_only=True, eq=False)
class DividendPayment(OneTimePayment):
    kind: ClassVar[PaymentKind] = PaymentKind.DIVIDEND

    ex_dividend_date: dt.date | None = None

    def get_cutoff_date(self) -> dt.date:
        if self.cutoff_date is None and self.ex_dividend_date is not None:
            return self.ex_dividend_date
        return super().get_cutoff_date()


@dataclass(kw_only=True, eq=False)
class PrincipalExchange(OneTimePayment):
    """Exchange of `notional` on the pay date."""

    kind: ClassVar[PaymentKind] = PaymentKind.PRINCIPAL_EXCHANGE

    notional: float = 0.0

    def compute_amount(self) -> float:
        return self.notional

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.notional *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Notional"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Notional"] = self.notional
        return values


@dataclass(kw_only=True, eq=False)
class FloatingPrincipalExchange(PrincipalExchange):
    """
    Principal exchange scaled by an index observation, e.g. an inflation ratio.

    The index is observed for the single period [pay_date, pay_date] and
    clipped to [floor, cap] when given.
    """

    kind: ClassVar[PaymentKind] = PaymentKind.FLOATING_PRINCIPAL_EXCHANGE

    rate_projector: RateProjector
    cap: float | None = None
    floor: float | None = None
    effective_exchange_override: float | None = None
    fixing_schedule: FixingSchedule = field(init=False)

    def __post_init__(self) -> None:
        self.fixing_schedule = self.rate_projector.fixing_schedule(
            self.pay_date, self.pay_date, self.pay_date, self.pay_date
        )

    @property
    def effective_exchange(self) -> float:
        if self.effective_exchange_override is not None:
            return self.effective_exchange_override
        value = self.rate_projector.fixing(self.fixing_schedule).forward
        if self.cap is not None:
            value = min(value, self.cap)
        if self.floor is not None:
            value = max(value, self.floor)
        return value

    @property
    def is_projected(self) -> bool:
        if self.effective_exchange_override is not None:
            return False
        return self.rate_projector.fixing(self.fixing_schedule).is_projected

    def compute_amount(self) -> float:
        return self.notional * self.effective_exchange

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Effective Exchange", "Is Projected"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Effective Exchange"] = self.effective_exchange
        values["Is Projected"] = self.is_projected
        return values


@dataclass(kw_only=True, eq=False)
class DefaultSettlement(Payment):
    """
    Settlement paid after a credit event.

    Pays `notional * (accrual + R)` when funded and `notional * (accrual + R - 1)`
    otherwise, on `default_settle_date` or, when unknown, on `default_date`.
    `accrual` is the accrued coupon (as a fraction of notional) folded in.
    """

    kind: ClassVar[PaymentKind] = PaymentKind.DEFAULT_SETTLEMENT

    pay_date: dt.date | None = None  # type: ignore[assignment]
    default_date: dt.date
    default_settle_date: dt.date | None = None
    notional: float = 1.0
    recovery_rate: float = 0.0
    accrual: float = 0.0
    is_funded: bool = False

    def __post_init__(self) -> None:
        if self.pay_date is None:
            self.pay_date = self.default_settle_date or self.default_date

    @property
    def accrual_amount(self) -> float:
        return self.notional * self.accrual

    @property
    def recovery_amount(self) -> float:
        recovery = self.recovery_rate if self.is_funded else self.recovery_rate - 1.0
        return self.notional * recovery

    def compute_amount(self) -> float:
        return self.accrual_amount + self.recovery_amount

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.notional *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Default Date", "Recovery Rate", "Accrual", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Default Date"] = self.default_date.strftime(date_format)
        values["Recovery Rate"] = self.recovery_rate
        values["Accrual"] = self.accrual_amount
        values["Amount"] = self.amount
        return values
