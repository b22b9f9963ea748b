"""Tests for schedule valuation: plain, survival-weighted and with a known default."""

import datetime as dt

from cashflows.curves import HazardRateCurve, ZeroRateCurve
from cashflows.dates import DayCount
from cashflows.default_risk import DefaultRiskCalculator
from cashflows.payments import BasicPayment, DefaultSettlement, FixedInterestPayment, PrincipalExchange
from cashflows.schedule import PaymentSchedule
from cashflows.valuation import (
    calculate_pv,
    calculate_schedule_pv,
    normalized_function,
    value_if_will_default,
)

AS_OF = dt.date(2025, 1, 1)
N = 1_000_000


def _disc() -> ZeroRateCurve:
    return ZeroRateCurve(name="USD_DISC", as_of=AS_OF, pillars=[1.0, 5.0], zero_rates_cc=[0.03, 0.035])


def _hazard(**kwargs) -> HazardRateCurve:
    return HazardRateCurve(name="CORP_HAZ", as_of=AS_OF, pillars=[1.0], hazard_rates=[0.02], **kwargs)


def _coupon(start: dt.date, end: dt.date) -> FixedInterestPayment:
    return FixedInterestPayment(
        pay_date=end,
        accrual_start=start,
        accrual_end=end,
        notional=N,
        coupon=0.05,
        day_count=DayCount.ACTUAL_360,
    )


def _quarterly_note() -> PaymentSchedule:
    dates = [dt.date(2025, 1, 1), dt.date(2025, 4, 1), dt.date(2025, 7, 1), dt.date(2025, 10, 1)]
    schedule = PaymentSchedule(_coupon(a, b) for a, b in zip(dates[:-1], dates[1:]))
    schedule.add_payment(PrincipalExchange(pay_date=dates[-1], notional=N))
    return schedule


def test_normalized_function_rebases_at_settle() -> None:
    """The rebased function is 1 up to settle and a ratio afterwards."""
    disc = _disc()
    settle = dt.date(2025, 3, 1)
    fn = normalized_function(disc.interpolate, settle)
    assert fn is not None
    assert fn(dt.date(2025, 2, 1)) == 1.0
    assert fn(settle) == 1.0
    later = dt.date(2026, 1, 1)
    assert abs(fn(later) - disc.interpolate(later) / disc.interpolate(settle)) < 1e-15
    assert normalized_function(None, settle) is None


def test_calculate_pv_without_credit_risk() -> None:
    """Without survival the PV is the discounted sum of amounts."""
    disc = _disc()
    schedule = _quarterly_note()
    value = calculate_pv(schedule.items(), AS_OF, AS_OF, disc.interpolate)
    expected = sum(p.amount * disc.interpolate(p.pay_date) for p in schedule)
    assert abs(value - expected) < 1e-6


def test_settle_date_payments_excluded_by_default() -> None:
    """Payments on the settle date only count when asked for."""
    disc = _disc()
    schedule = PaymentSchedule([BasicPayment(pay_date=AS_OF, fixed_amount=100.0)])
    assert calculate_pv(schedule.items(), AS_OF, AS_OF, disc.interpolate) == 0.0
    included = calculate_pv(schedule.items(), AS_OF, AS_OF, disc.interpolate, include_settle_payments=True)
    assert abs(included - 100.0) < 1e-12


def test_undiscounted_accrued_part() -> None:
    """Without discounting accrued, the accrued coupon at settle is added at face value."""
    disc = _disc()
    schedule = _quarterly_note()
    settle = dt.date(2025, 2, 15)
    value = calculate_pv(schedule.items(), AS_OF, settle, disc.interpolate, discounting_accrued=False)
    expected = 0.0
    for p in schedule:
        accrued, remaining = p.accrued(settle)
        expected += accrued + remaining * disc.interpolate(p.pay_date)
    assert abs(value - expected) < 1e-6
    discounted = calculate_pv(schedule.items(), AS_OF, settle, disc.interpolate)
    assert value > discounted


def test_default_settlements_valued_without_survival() -> None:
    """Coupons are survival-weighted; settlements are discounted only."""
    disc, hazard = _disc(), _hazard()
    coupon = _coupon(dt.date(2025, 1, 1), dt.date(2025, 4, 1))
    settlement = DefaultSettlement(default_date=dt.date(2025, 5, 1), notional=N, recovery_rate=0.4)
    schedule = PaymentSchedule([coupon, settlement])
    value = calculate_pv(schedule.items(), AS_OF, AS_OF, disc.interpolate, survival_fn=hazard.interpolate)
    expected = coupon.amount * disc.interpolate(coupon.pay_date) * hazard.interpolate(coupon.pay_date)
    expected += settlement.amount * disc.interpolate(settlement.pay_date)
    assert abs(value - expected) < 1e-6


def test_schedule_pv_with_survival_curve() -> None:
    """Each payment is weighted by survival to its credit-risk end."""
    disc, hazard = _disc(), _hazard()
    schedule = _quarterly_note()
    risky = calculate_schedule_pv(schedule, AS_OF, AS_OF, disc.interpolate, survival_curve=hazard)
    expected = sum(
        p.amount * disc.interpolate(p.pay_date) * hazard.interpolate(p.pay_date) for p in schedule
    )
    assert abs(risky - expected) < 1e-6
    riskless = calculate_schedule_pv(schedule, AS_OF, AS_OF, disc.interpolate)
    assert risky < riskless


def test_value_if_will_default_requires_known_default() -> None:
    """No jump date means the known-default path does not apply."""
    disc = _disc()
    drc = DefaultRiskCalculator(AS_OF, AS_OF, dt.date(2025, 10, 1), _hazard())
    assert value_if_will_default(_quarterly_note(), AS_OF, AS_OF, disc.interpolate, drc, -0.6) is None
    assert value_if_will_default(_quarterly_note(), AS_OF, AS_OF, disc.interpolate, None, -0.6) is None


def test_value_if_will_default_splits_fees_and_protection() -> None:
    """Periods ended before the default pay in full, the live one is risky, later pay dates are lost."""
    disc = _disc()
    hazard = _hazard(jump_date=dt.date(2025, 5, 15))
    first = _coupon(dt.date(2025, 1, 1), dt.date(2025, 4, 1))
    # paid in advance, at risk until its period end
    live = FixedInterestPayment(
        pay_date=dt.date(2025, 4, 1),
        accrual_start=dt.date(2025, 4, 1),
        accrual_end=dt.date(2025, 7, 1),
        credit_risk_end=dt.date(2025, 7, 1),
        notional=N,
        coupon=0.05,
    )
    lost = _coupon(dt.date(2025, 7, 1), dt.date(2025, 10, 1))
    schedule = PaymentSchedule([first, live, lost])
    drc = DefaultRiskCalculator(AS_OF, AS_OF, dt.date(2025, 10, 1), hazard)

    fees = value_if_will_default(
        schedule, AS_OF, AS_OF, disc.interpolate, drc, -0.6, include_protection=False
    )
    expected_fees = first.amount * disc.interpolate(first.pay_date)
    expected_fees += live.amount * drc.risky_discount(live, disc.interpolate)
    assert fees is not None and abs(fees - expected_fees) < 1e-6

    protection = value_if_will_default(
        schedule, AS_OF, AS_OF, disc.interpolate, drc, -0.6, include_fees=False
    )
    expected_protection = -0.6 * N * drc.protection_for(live, disc.interpolate)
    assert protection is not None and abs(protection - expected_protection) < 1e-6
    assert protection < 0.0


def test_value_if_will_default_on_settle() -> None:
    """A default on settle pays the protection outright on the period ending that day."""
    disc = _disc()
    settle = dt.date(2025, 4, 1)
    drc = DefaultRiskCalculator(AS_OF, settle, dt.date(2025, 10, 1), _hazard(jump_date=settle))
    schedule = _quarterly_note()
    protection = value_if_will_default(
        schedule, AS_OF, settle, disc.interpolate, drc, 0.6, include_fees=False
    )
    assert protection is not None
    assert abs(protection - 0.6 * N * disc.interpolate(settle)) < 1e-6
    fees = value_if_will_default(
        schedule, AS_OF, settle, disc.interpolate, drc, 0.6, include_protection=False
    )
    first = schedule.get_payments_by_type(FixedInterestPayment)[0]
    assert fees is not None
    assert abs(fees - first.amount * disc.interpolate(settle)) < 1e-6


def test_value_if_will_default_before_settle_is_worthless() -> None:
    """A default before settle, or a prepayment on settle, is worth nothing."""
    disc = _disc()
    settle = dt.date(2025, 2, 1)
    drc = DefaultRiskCalculator(AS_OF, settle, dt.date(2025, 10, 1), _hazard(jump_date=dt.date(2025, 1, 20)))
    assert value_if_will_default(_quarterly_note(), AS_OF, settle, disc.interpolate, drc, -0.6) == 0.0
    cpty = HazardRateCurve(name="CPTY", as_of=AS_OF, pillars=[1.0], hazard_rates=[0.05], jump_date=settle)
    prepaid = DefaultRiskCalculator(AS_OF, settle, dt.date(2025, 10, 1), _hazard(), counterparty_curve=cpty)
    assert prepaid.is_prepaid
    assert value_if_will_default(_quarterly_note(), AS_OF, settle, disc.interpolate, prepaid, -0.6) == 0.0
