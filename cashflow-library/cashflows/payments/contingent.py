"""
Credit-contingent payments.

These pay only if a credit event happens inside [begin_date, end_date). Their
risky discount is the expected discounted payout of a unit paid on default,
approximated over the whole period by the average discount factor times the
survival drop.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, ClassVar

from cashflows.interfaces import DiscountFunction
from cashflows.payments.base import DEFAULT_DATE_FORMAT, Payment, PaymentKind
from cashflows.settings import get_settings


@dataclass(kw_only=True, eq=False)
class ContingentPayment(Payment):
    """Unit-notional payment on default; `pay_date` defaults to `end_date`."""

    kind: ClassVar[PaymentKind] = PaymentKind.CONTINGENT

    pay_date: dt.date | None = None  # type: ignore[assignment]
    begin_date: dt.date
    end_date: dt.date
    notional: float = 1.0
    include_end_date_protection: bool = False

    def __post_init__(self) -> None:
        if self.pay_date is None:
            self.pay_date = self.end_date

    def compute_amount(self) -> float:
        return self.notional

    def protection_end_date(self) -> dt.date:
        if self.include_end_date_protection:
            return self.end_date + dt.timedelta(days=get_settings().end_date_protection_days)
        return self.end_date

    def risky_discount(
        self,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> float:
        if survival_fn is None:
            return 0.0
        avg_df = 0.5 * (discount_fn(self.begin_date) + discount_fn(self.end_date))
        return avg_df * (survival_fn(self.begin_date) - survival_fn(self.protection_end_date()))

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.notional *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Begin Date", "End Date", "Notional", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Begin Date"] = self.begin_date.strftime(date_format)
        values["End Date"] = self.end_date.strftime(date_format)
        values["Notional"] = self.notional
        values["Amount"] = self.amount
        return values


@dataclass(kw_only=True, eq=False)
class CreditContingentPayment(ContingentPayment):
    kind: ClassVar[PaymentKind] = PaymentKind.CREDIT_CONTINGENT


@dataclass(kw_only=True, eq=False)
class RecoveryPayment(ContingentPayment):
    """Recovery leg: `notional * R` when funded, `notional * (R - 1)` otherwise."""

    kind: ClassVar[PaymentKind] = PaymentKind.RECOVERY

    recovery_rate: float = 0.4
    is_funded: bool = False

    def compute_amount(self) -> float:
        if self.is_funded:
            return self.notional * self.recovery_rate
        return self.notional * (self.recovery_rate - 1.0)

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Recovery Rate"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Recovery Rate"] = self.recovery_rate
        return values
