"""Commodity swap legs: fixed-price and averaged floating-price payments."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, ClassVar

from cashflows.dates import Frequency, add_frequency
from cashflows.fixings import FixingSchedule, RateResetState
from cashflows.interfaces import RateProjector
from cashflows.payments.base import DEFAULT_DATE_FORMAT, Payment, PaymentKind


@dataclass(kw_only=True, eq=False)
class CommodityFixedPayment(Payment):
    kind: ClassVar[PaymentKind] = PaymentKind.COMMODITY_FIXED

    quantity: float
    fixed_price: float

    def compute_amount(self) -> float:
        return self.quantity * self.fixed_price

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.quantity *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Quantity", "Price", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values.update(
            {"Quantity": self.quantity, "Price": self.fixed_price, "Amount": self.amount}
        )
        return values


@dataclass(kw_only=True, eq=False)
class CommodityFloatingPayment(Payment):
    """
    Pays `quantity * (average_price * index_multiplier + spread)`.

    The price is averaged over observation periods rolled from `period_start`
    by `observation_frequency` (a single observation when NONE).
    """

    kind: ClassVar[PaymentKind] = PaymentKind.COMMODITY_FLOATING

    price_projector: RateProjector
    period_start: dt.date
    period_end: dt.date
    quantity: float
    spread: float = 0.0
    index_multiplier: float | None = None
    observation_frequency: Frequency = Frequency.NONE
    observations: list[FixingSchedule] = field(init=False)

    def __post_init__(self) -> None:
        self.observations = []
        start = self.period_start
        n = 0
        while True:
            if self.observation_frequency is Frequency.NONE:
                end = self.period_end
            else:
                n += 1
                end = min(add_frequency(self.period_start, self.observation_frequency, n), self.period_end)
            self.observations.append(
                self.price_projector.fixing_schedule(self.period_start, start, end, self.pay_date)
            )
            if end >= self.period_end:
                break
            start = end

    @property
    def multiplier(self) -> float:
        return 1.0 if self.index_multiplier is None else self.index_multiplier

    @property
    def average_price(self) -> float:
        prices = [self.price_projector.fixing(obs).forward for obs in self.observations]
        return sum(prices) / len(prices)

    @property
    def is_projected(self) -> bool:
        return any(
            info.state is RateResetState.IS_PROJECTED
            for obs in self.observations
            for info in self.price_projector.reset_info(obs)
        )

    def compute_amount(self) -> float:
        return self.quantity * (self.average_price * self.multiplier + self.spread)

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.quantity *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Quantity", "Average Price", "Spread", "Is Projected", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values.update(
            {
                "Quantity": self.quantity,
                "Average Price": self.average_price,
                "Spread": self.spread,
                "Is Projected": self.is_projected,
                "Amount": self.amount,
            }
        )
        return values
