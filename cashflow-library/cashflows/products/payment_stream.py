"""Generic payment stream product: an explicit schedule valued under default risk."""

import datetime as dt
from dataclasses import dataclass

from cashflows.dates import TimeUnit
from cashflows.schedule import PaymentSchedule


@dataclass
class PaymentStream:
    """
    A PaymentSchedule plus the names of the curves it is valued on.

    - `survival_curve` / `counterparty_curve`: optional credit and
      prepayment curves; with both, `correlation` links them.
    - `settle`: defaults to the discount curve's as-of date.
    - `fx_pair`: when set, the PV is converted with that FX spot.
    """

    schedule: PaymentSchedule
    discount_curve: str
    survival_curve: str | None = None
    counterparty_curve: str | None = None
    correlation: float = 0.0
    settle: dt.date | None = None
    include_settle_payments: bool = False
    discounting_accrued: bool = True
    log_linear_approximation: bool = False
    step_size: int = 0
    step_unit: TimeUnit = TimeUnit.NONE
    fx_pair: str | None = None
