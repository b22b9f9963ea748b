"""Price-return payment: notional times the relative change of an observed price."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, ClassVar

from cashflows.errors import InvalidArgumentError
from cashflows.fixings import FixingSchedule
from cashflows.interfaces import RateProjector
from cashflows.payments.base import DEFAULT_DATE_FORMAT, Payment, PaymentKind


@dataclass(kw_only=True, eq=False)
class PriceReturnPayment(Payment):
    """
    Pays `notional * (final_price / initial_price - 1)`.

    Prices are observed through `price_projector` at the end of the periods
    [begin_date, begin_date] and [begin_date, end_date]; `initial_price`
    overrides the first observation.
    """

    kind: ClassVar[PaymentKind] = PaymentKind.PRICE_RETURN

    price_projector: RateProjector
    begin_date: dt.date
    end_date: dt.date
    notional: float = 1.0
    initial_price: float | None = None
    initial_schedule: FixingSchedule = field(init=False)
    final_schedule: FixingSchedule = field(init=False)

    def __post_init__(self) -> None:
        self.initial_schedule = self.price_projector.fixing_schedule(
            self.begin_date, self.begin_date, self.begin_date, self.pay_date
        )
        self.final_schedule = self.price_projector.fixing_schedule(
            self.begin_date, self.begin_date, self.end_date, self.pay_date
        )

    @property
    def start_price(self) -> float:
        if self.initial_price is not None:
            return self.initial_price
        return self.price_projector.fixing(self.initial_schedule).forward

    @property
    def end_price(self) -> float:
        return self.price_projector.fixing(self.final_schedule).forward

    @property
    def is_projected(self) -> bool:
        return self.price_projector.fixing(self.final_schedule).is_projected

    def compute_amount(self) -> float:
        start = self.start_price
        if start <= 0.0:
            raise InvalidArgumentError(f"Initial price must be positive, got {start}")
        return self.notional * (self.end_price / start - 1.0)

    def scale(self, factor: float) -> None:
        super().scale(factor)
        self.notional *= factor

    def data_columns(self) -> list[str]:
        return super().data_columns() + ["Initial Price", "Final Price", "Notional", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Initial Price"] = self.start_price
        values["Final Price"] = self.end_price
        values["Notional"] = self.notional
        values["Amount"] = self.amount
        return values
