"""Single-name CDS product (instrument data only; pricing via PricingEngine)."""

import datetime as dt
from dataclasses import dataclass

from cashflows.dates import DayCount, Frequency, TimeUnit


@dataclass
class CDS:
    """
    Single-name credit default swap (protection buyer convention by default).

    Premium leg: fixed coupons rolled from `effective_date` to `maturity_date`,
    paid on surviving notional (with accrual on default when enabled).
    Protection leg: loss given default on the notional of each period.
    Uses discount_curve for DF and survival_curve for S(t).
    PV = pv_protection - pv_premium for protection_buyer=True, as of `settle`
    (the discount curve's as-of date when not given).
    """

    discount_curve: str
    survival_curve: str
    notional: float
    premium_rate: float
    effective_date: dt.date
    maturity_date: dt.date
    frequency: Frequency = Frequency.QUARTERLY
    day_count: DayCount = DayCount.ACTUAL_360
    recovery: float = 0.4
    protection_buyer: bool = True
    accrual_on_default: bool = True
    include_maturity_protection: bool = True
    log_linear_approximation: bool = False
    step_size: int = 0
    step_unit: TimeUnit = TimeUnit.NONE
    settle: dt.date | None = None
