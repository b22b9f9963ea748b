"""
Present value of grouped payments.

`pv` values `(cutoff date, payments)` groups as produced by the grouping
helpers in `cashflows.schedule`:
- groups before the settle date are skipped (and those on it unless
  `include_settle_payments`);
- with `discounting_accrued`, every payment is valued in full as
  `domestic_amount * risky_discount`;
- otherwise only the amount remaining after settle is discounted, and the
  part already accrued is added undiscounted (survival-weighted at settle).
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable

from cashflows.dates import TimeUnit
from cashflows.default_risk import DefaultRiskCalculator, SurvivalSource
from cashflows.interfaces import DiscountFunction
from cashflows.payments import DefaultSettlement, InterestPayment, Payment
from cashflows.schedule import GroupedPayments, PaymentSchedule, set_protection_start

logger = logging.getLogger(__name__)


def normalized_function(fn: DiscountFunction | None, settle: dt.date) -> DiscountFunction | None:
    """Rebase a discount or survival function to 1 at `settle`."""
    if fn is None:
        return None
    base = fn(settle)
    if abs(base - 1.0) < 1e-14 or abs(base) < 1e-14:
        return lambda date: 1.0 if date < settle else fn(date)
    return lambda date: 1.0 if date <= settle else fn(date) / base


def _group_pv(
    payments: Iterable[Payment],
    discount_fn: DiscountFunction,
    survival_fn: DiscountFunction | None,
) -> float:
    return sum(p.domestic_amount * p.risky_discount(discount_fn, survival_fn) for p in payments)


def _group_remaining_pv(
    payments: Iterable[Payment],
    discount_fn: DiscountFunction,
    survival_fn: DiscountFunction | None,
    settle: dt.date,
) -> tuple[float, float]:
    pv = 0.0
    accrued_total = 0.0
    for p in payments:
        accrued, remaining = p.accrued(settle)
        accrued_total += accrued
        pv += remaining * p.risky_discount(discount_fn, survival_fn)
    return pv, accrued_total


def pv(
    grouped: Iterable[tuple[dt.date, list[Payment]]],
    as_of: dt.date,
    settle: dt.date,
    discount_fn: DiscountFunction,
    survival_fn: DiscountFunction | None,
    include_settle_payments: bool,
    discounting_accrued: bool,
) -> float:
    total = 0.0
    guaranteed_accrued = 0.0
    for date, payments in grouped:
        if date < settle or (date == settle and not include_settle_payments):
            continue
        if discounting_accrued:
            total += _group_pv(payments, discount_fn, survival_fn)
        else:
            value, accrued = _group_remaining_pv(payments, discount_fn, survival_fn, settle)
            total += value
            guaranteed_accrued += accrued
    if survival_fn is not None:
        guaranteed_accrued *= survival_fn(settle)
    return guaranteed_accrued + total / discount_fn(as_of)


def calculate_pv(
    grouped: Iterable[tuple[dt.date, list[Payment]]],
    as_of: dt.date,
    settle: dt.date,
    discount_fn: DiscountFunction,
    default_risk: DefaultRiskCalculator | None = None,
    survival_fn: DiscountFunction | None = None,
    include_settle_payments: bool = False,
    discounting_accrued: bool = True,
    include_default_on_settle: bool = True,
) -> float:
    """
    PV of regular payments plus default settlements.

    The discount function is rebased at `as_of`. Survival comes from
    `default_risk` when given (already normalised at its risk begin date),
    otherwise `survival_fn` rebased at `settle`. Default settlements are
    valued without survival, and on the settle date according to
    `include_default_on_settle`.
    """
    df = normalized_function(discount_fn, as_of)
    assert df is not None
    if default_risk is not None:
        sf: DiscountFunction | None = default_risk.survival_probability
    else:
        sf = normalized_function(survival_fn, settle)

    regular: GroupedPayments = []
    settlements: GroupedPayments = []
    for date, payments in grouped:
        defaults = [p for p in payments if isinstance(p, DefaultSettlement)]
        if defaults:
            settlements.append((date, list(defaults)))
            regular.append((date, [p for p in payments if not isinstance(p, DefaultSettlement)]))
        else:
            regular.append((date, payments))

    value = pv(regular, as_of, settle, df, sf, include_settle_payments, discounting_accrued)
    if settlements:
        value += pv(settlements, as_of, settle, df, None, include_default_on_settle, discounting_accrued)
    return value


def calculate_schedule_pv(
    schedule: PaymentSchedule,
    as_of: dt.date,
    settle: dt.date,
    discount_fn: DiscountFunction,
    survival_curve: SurvivalSource | None = None,
    counterparty_curve: SurvivalSource | None = None,
    correlation: float = 0.0,
    step_size: int = 0,
    step_unit: TimeUnit = TimeUnit.NONE,
    include_settle_payments: bool = False,
    discounting_accrued: bool = True,
    log_linear_approximation: bool = False,
) -> float:
    """
    PV of a whole schedule under default risk from settle to its last accrual end.

    The first live recovery period is extended back to `settle`.
    """
    interest = sorted(schedule.get_payments_by_type(InterestPayment), key=lambda p: p.pay_date)
    maturity = interest[-1].accrual_end if interest else settle
    default_risk = None
    if survival_curve is not None or counterparty_curve is not None:
        default_risk = DefaultRiskCalculator(
            as_of, settle, maturity, survival_curve, counterparty_curve, correlation,
            accrual_on_default=False,
            include_default_date_in_accrual=True,
            log_linear_approximation=log_linear_approximation,
            step_size=step_size,
            step_unit=step_unit,
        )
    jump = getattr(survival_curve, "jump_date", None)
    include_default_on_settle = jump is not None and jump >= settle
    return calculate_pv(
        set_protection_start(schedule, settle),
        as_of,
        settle,
        discount_fn,
        default_risk=default_risk,
        include_settle_payments=include_settle_payments,
        discounting_accrued=discounting_accrued,
        include_default_on_settle=include_default_on_settle,
    )


def value_if_will_default(
    schedule: PaymentSchedule,
    as_of: dt.date,
    settle: dt.date,
    discount_fn: DiscountFunction,
    default_risk: DefaultRiskCalculator | None,
    default_rate: float,
    include_fees: bool = True,
    include_protection: bool = True,
    discount_accrued: bool = True,
) -> float | None:
    """
    Value when the default date is already known, or None when it is not.

    Defaults before settle (or prepayments on settle) are worth nothing.
    Periods ending before the default are paid in full; the period containing
    the default is valued with risky discounting plus `default_rate` protection;
    a default on settle pays the protection and the accrued coupon outright.
    """
    if default_risk is None or default_risk.default_date is None:
        return None
    default_date = default_risk.default_date
    if default_date < settle:
        return 0.0
    default_on_settle = default_date == settle
    if default_on_settle and default_risk.is_prepaid:
        return 0.0

    df = normalized_function(discount_fn, settle)
    assert df is not None
    total = 0.0
    accrued_total = 0.0
    for payment in schedule:
        if payment.pay_date > default_date:
            continue
        if isinstance(payment, InterestPayment):
            ip = payment
            if ip.period_end_date < settle:
                continue
            if ip.period_end_date == default_date and default_on_settle:
                if include_protection:
                    total += default_rate * ip.notional
                if include_fees and ip.accrual_start < settle:
                    if discount_accrued:
                        total += ip.domestic_amount
                    else:
                        accrued_total += ip.domestic_amount
                break
            if ip.period_end_date < default_date:
                if include_fees:
                    fee_df = df(ip.pay_date)
                    if ip.accrual_start < settle and discount_accrued:
                        accrued, remaining = ip.accrued(settle)
                        accrued_total += accrued
                        total += remaining * fee_df
                    else:
                        total += ip.domestic_amount * fee_df
                continue
            if include_fees:
                total += ip.domestic_amount * default_risk.risky_discount(ip, df)
            if include_protection:
                total += default_rate * ip.notional * default_risk.protection_for(ip, df)
            continue
        if include_fees:
            total += payment.domestic_amount * df(payment.pay_date)

    logger.debug("Valued schedule with known default on %s", default_date)
    return accrued_total + total * discount_fn(settle) / discount_fn(as_of)
