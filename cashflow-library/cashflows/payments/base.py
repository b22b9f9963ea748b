"""
Abstract payment contract.

Every payment knows its pay date and how to compute its own nominal amount.
Valuation asks two questions of each payment:
- `amount`: the override when one is set, otherwise `compute_amount()`;
- `risky_discount(discount_fn, survival_fn)`: the factor that turns the
  nominal amount into a present value at the curve as-of date.
"""

from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from cashflows.errors import UnsupportedConfigurationError
from cashflows.interfaces import DiscountFunction

if TYPE_CHECKING:
    from cashflows.payments.nodes import CashflowNode


class PaymentKind(Enum):
    """Tag for each concrete payment variant."""

    FIXED_INTEREST = "FixedInterest"
    FLOATING_INTEREST = "FloatingInterest"
    BASIC = "Basic"
    PRINCIPAL_EXCHANGE = "PrincipalExchange"
    FLOATING_PRINCIPAL_EXCHANGE = "FloatingPrincipalExchange"
    UPFRONT_FEE = "UpfrontFee"
    BULLET_BONUS = "BulletBonus"
    DIVIDEND = "Dividend"
    DEFAULT_SETTLEMENT = "DefaultSettlement"
    CONTINGENT = "Contingent"
    CREDIT_CONTINGENT = "CreditContingent"
    RECOVERY = "Recovery"
    PRICE_RETURN = "PriceReturn"
    COMMODITY_FLOATING = "CommodityFloating"
    COMMODITY_FIXED = "CommodityFixed"


DEFAULT_DATE_FORMAT = "%Y-%m-%d"


@dataclass(kw_only=True, eq=False)
class Payment(ABC):
    """
    Base payment.

    - `amount_override`: when set, returned verbatim by `amount`.
    - `fx_rate` / `fx_curve`: conversion to the domestic currency; the fixed
      rate wins over the curve, and no conversion means 1.
    - `cutoff_date`: used instead of the pay date for inclusion tests.
    - `credit_risk_end`: the date credit risk stops; the pay date when unset.

    Payments compare by identity: two payments with identical fields are still
    different cashflows.
    """

    kind: ClassVar[PaymentKind]

    pay_date: dt.date
    currency: str = "USD"
    amount_override: float | None = None
    fx_rate: float | None = None
    fx_curve: DiscountFunction | None = None
    cutoff_date: dt.date | None = None
    credit_risk_end: dt.date | None = None
    volatility_start_date: dt.date | None = None

    @abstractmethod
    def compute_amount(self) -> float:
        """Nominal amount implied by the payment terms."""
        ...

    @property
    def amount(self) -> float:
        if self.amount_override is not None:
            return self.amount_override
        return self.compute_amount()

    @amount.setter
    def amount(self, value: float | None) -> None:
        self.amount_override = value

    @property
    def fx(self) -> float:
        if self.fx_rate is not None:
            return self.fx_rate
        if self.fx_curve is not None:
            return self.fx_curve(self.pay_date)
        return 1.0

    @property
    def domestic_amount(self) -> float:
        return self.amount * self.fx

    @property
    def credit_risk_end_date(self) -> dt.date:
        return self.credit_risk_end if self.credit_risk_end is not None else self.pay_date

    @property
    def is_projected(self) -> bool:
        return False

    def get_cutoff_date(self) -> dt.date:
        return self.cutoff_date if self.cutoff_date is not None else self.pay_date

    def risky_discount(
        self,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> float:
        """Discount factor at the pay date times survival to the credit-risk end."""
        df = discount_fn(self.pay_date)
        if survival_fn is None:
            return df
        return df * survival_fn(self.credit_risk_end_date)

    def accrued(self, as_of: dt.date) -> tuple[float, float]:
        """(accrued, remaining) at `as_of`; one-time payments never accrue."""
        return 0.0, self.amount

    def scale(self, factor: float) -> None:
        """Rescale notional-like fields in place."""
        if self.amount_override is not None:
            self.amount_override *= factor

    def to_cashflow_node(
        self,
        notional: float,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> CashflowNode:
        raise UnsupportedConfigurationError(
            f"Conversion of {type(self).__name__} to a cashflow node is not supported"
        )

    def data_columns(self) -> list[str]:
        return ["Pay Date", "Type", "Currency"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        return {
            "Pay Date": self.pay_date.strftime(date_format),
            "Type": self.kind.value,
            "Currency": self.currency,
        }
