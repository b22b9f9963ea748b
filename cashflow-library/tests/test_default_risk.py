"""Tests for DefaultRiskCalculator: survival, protection and accrual on default."""

import datetime as dt
import math

import pytest

from cashflows.curves import HazardRateCurve, ZeroRateCurve
from cashflows.dates import DayCount, TimeUnit
from cashflows.default_risk import (
    DefaultRiskCalculator,
    TimeGridBuilder,
    accrual_on_default_integral,
    combined_survival,
    find_default_date,
    protection_integral,
)
from cashflows.errors import InvalidArgumentError
from cashflows.payments import CreditContingentPayment, FixedInterestPayment

AS_OF = dt.date(2025, 1, 1)
END = dt.date(2027, 1, 1)


def _disc(rate: float = 0.03) -> ZeroRateCurve:
    return ZeroRateCurve(name="USD_DISC", as_of=AS_OF, pillars=[1.0], zero_rates_cc=[rate])


def _hazard(rate: float = 0.02, name: str = "CORP_HAZ", **kwargs) -> HazardRateCurve:
    return HazardRateCurve(name=name, as_of=AS_OF, pillars=[1.0], hazard_rates=[rate], **kwargs)


def _coupon(start: dt.date, end: dt.date, **kwargs) -> FixedInterestPayment:
    return FixedInterestPayment(
        pay_date=end,
        accrual_start=start,
        accrual_end=end,
        notional=1.0,
        coupon=0.05,
        day_count=DayCount.ACTUAL_360,
        **kwargs,
    )


def test_survival_starts_at_one_and_decreases() -> None:
    """Survival is 1 at the risk begin date and non-increasing afterwards."""
    begin = dt.date(2025, 6, 1)
    drc = DefaultRiskCalculator(AS_OF, begin, END, _hazard(), counterparty_curve=_hazard(0.05, "CPTY"))
    assert drc.survival_probability(begin) == 1.0
    assert drc.survival_probability(AS_OF) == 1.0
    dates = [begin + dt.timedelta(days=30 * i) for i in range(1, 20)]
    values = [drc.survival_probability(d) for d in dates]
    assert all(0.0 < v <= 1.0 for v in values)
    assert all(b <= a for a, b in zip(values, values[1:]))


def test_no_credit_curve_means_no_default() -> None:
    """Without curves, survival is 1 and protection is worth nothing."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, None)
    assert drc.survival_probability(END) == 1.0
    assert drc.protection(AS_OF, END, False, _disc().interpolate) == 0.0


def test_protection_log_linear_closed_form() -> None:
    """Flat hazard and rate: protection = h / (h + r) * (1 - exp(-(h + r) T))."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard(0.02), log_linear_approximation=True)
    value = drc.protection(AS_OF, END, False, _disc(0.03).interpolate)
    years = (END - AS_OF).days / 365.0
    expected = 0.02 / 0.05 * (1.0 - math.exp(-0.05 * years))
    assert abs(value - expected) < 1e-8


def test_protection_additive_log_linear_flat_curves() -> None:
    """On flat curves the log-linear protection over a split sums to the whole."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard(), log_linear_approximation=True)
    df = _disc().interpolate
    mid = dt.date(2025, 9, 17)
    whole = drc.protection(AS_OF, END, False, df)
    split = drc.protection(AS_OF, mid, False, df) + drc.protection(mid, END, False, df)
    assert abs(whole - split) < 1e-12


def test_protection_additive_linear_daily_grid() -> None:
    """With a daily grid the linear protection is additive over any split date."""
    hazard = HazardRateCurve(name="H", as_of=AS_OF, pillars=[0.5, 1.0, 2.0], hazard_rates=[0.01, 0.03, 0.02])
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, hazard, step_size=1, step_unit=TimeUnit.DAYS)
    df = _disc().interpolate
    mid = dt.date(2025, 11, 3)
    whole = drc.protection(AS_OF, END, True, df)
    split = drc.protection(AS_OF, mid, False, df) + drc.protection(mid, END, True, df)
    assert abs(whole - split) < 1e-12


def test_end_date_protection_adds_a_day() -> None:
    """Including end-date protection extends the survival drop."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard())
    df = _disc().interpolate
    assert drc.protection(AS_OF, END, True, df) > drc.protection(AS_OF, END, False, df)


def test_protection_rejects_inverted_window() -> None:
    """end_date before begin_date is an invalid argument."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard())
    with pytest.raises(InvalidArgumentError, match="end_date"):
        drc.protection(END, AS_OF, False, _disc().interpolate)


def test_protection_for_contingent_payment() -> None:
    """protection_for uses the payment's window, clipped to the credit-risk begin date."""
    begin = dt.date(2025, 3, 1)
    drc = DefaultRiskCalculator(AS_OF, begin, END, _hazard())
    df = _disc().interpolate
    cp = CreditContingentPayment(begin_date=AS_OF, end_date=dt.date(2025, 7, 1))
    assert drc.protection_for(cp, df) == drc.protection(begin, dt.date(2025, 7, 1), False, df)


def test_accrual_on_default_additive_linear_daily_grid() -> None:
    """Linear accrual on default sums over a split when integrated daily."""
    drc = DefaultRiskCalculator(
        AS_OF, AS_OF, END, _hazard(), accrual_on_default=True, step_size=1, step_unit=TimeUnit.DAYS
    )
    df = _disc().interpolate
    ip = _coupon(dt.date(2025, 1, 1), dt.date(2025, 7, 1), accrued_fraction_at_default=0.5)
    mid = dt.date(2025, 3, 20)
    whole = drc.accrual_on_default(ip, df)
    split = drc.accrual_on_default_between(ip, ip.accrual_start, mid, df) + drc.accrual_on_default_between(
        ip, mid, ip.accrual_end, df
    )
    assert whole > 0.0
    assert abs(whole - split) < 1e-12


def test_accrual_on_default_additive_log_linear_flat_curves() -> None:
    """Log-linear accrual on default sums over a split on flat curves."""
    drc = DefaultRiskCalculator(
        AS_OF, AS_OF, END, _hazard(), accrual_on_default=True, log_linear_approximation=True
    )
    df = _disc().interpolate
    ip = _coupon(dt.date(2025, 1, 1), dt.date(2025, 7, 1), accrued_fraction_at_default=0.5)
    mid = dt.date(2025, 4, 11)
    whole = drc.accrual_on_default(ip, df)
    split = drc.accrual_on_default_between(ip, ip.accrual_start, mid, df) + drc.accrual_on_default_between(
        ip, mid, ip.accrual_end, df
    )
    assert abs(whole - split) < 1e-10 * whole


def test_accrual_on_default_bounded_by_default_probability() -> None:
    """The expected accrued fraction is positive and below the discounted default probability."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard(), accrual_on_default=True)
    df = _disc().interpolate
    ip = _coupon(dt.date(2025, 1, 1), dt.date(2025, 7, 1), accrued_fraction_at_default=0.5)
    aod = drc.accrual_on_default(ip, df)
    assert 0.0 < aod < 1.0 - drc.survival_probability(ip.accrual_end)


def test_risky_discount_without_accrual_fraction() -> None:
    """With no accrual at default, risky discount = DF(pay) * S(credit-risk end)."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard())
    df = _disc().interpolate
    ip = _coupon(dt.date(2025, 4, 1), dt.date(2025, 7, 1))
    expected = df(ip.pay_date) * drc.survival_probability(ip.pay_date)
    assert abs(drc.risky_discount(ip, df) - expected) < 1e-15


def test_accrual_ratio_for_straddling_period() -> None:
    """A period straddling the risk begin date is scaled by 1 + accrued / remaining."""
    settle = dt.date(2025, 2, 15)
    drc = DefaultRiskCalculator(AS_OF, settle, END, _hazard())
    ip = _coupon(dt.date(2025, 1, 1), dt.date(2025, 4, 1))
    accrued, remaining = ip.accrued(settle)
    assert abs(drc.accrual_ratio(ip) - (1.0 + accrued / remaining)) < 1e-15
    assert drc.accrual_ratio(_coupon(dt.date(2025, 4, 1), dt.date(2025, 7, 1))) == 1.0
    assert drc.accrual_risk_begin_date(dt.date(2025, 1, 1)) == settle


def test_independent_counterparty_multiplies_survivals() -> None:
    """At zero correlation, joint survival is close to the product of the marginals."""
    credit, cpty = _hazard(0.02), _hazard(0.05, "CPTY")
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, credit, counterparty_curve=cpty, correlation=0.0)
    date = dt.date(2026, 1, 1)
    expected = credit.interpolate(date) * cpty.interpolate(date)
    assert abs(drc.survival_probability(date) - expected) < 1e-5
    assert drc.credit_survival(date) > drc.survival_probability(date)


def test_correlation_out_of_range_raises() -> None:
    """Correlation must lie in [-1, 1]."""
    with pytest.raises(InvalidArgumentError, match="correlation"):
        DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard(), counterparty_curve=_hazard(0.05, "CPTY"), correlation=1.5)


def test_negative_step_size_raises() -> None:
    """Step sizes must not be negative."""
    with pytest.raises(InvalidArgumentError, match="step_size"):
        DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard(), step_size=-1, step_unit=TimeUnit.DAYS)


def test_time_grid_anchored_points() -> None:
    """Grid points are anchored, strictly inside the window, and end with the window end."""
    builder = TimeGridBuilder(1, TimeUnit.MONTHS, AS_OF)
    assert builder.grid(dt.date(2025, 2, 10), dt.date(2025, 5, 1)) == [
        dt.date(2025, 3, 1),
        dt.date(2025, 4, 1),
        dt.date(2025, 5, 1),
    ]
    assert builder.grid(dt.date(2025, 5, 1), dt.date(2025, 5, 1)) == []
    with pytest.raises(InvalidArgumentError):
        TimeGridBuilder(0, TimeUnit.DAYS)


def test_find_default_date() -> None:
    """The earlier jump date wins; a counterparty jump first means prepaid."""
    credit = _hazard(jump_date=dt.date(2025, 6, 1))
    cpty = _hazard(0.05, "CPTY", jump_date=dt.date(2025, 3, 1))
    assert find_default_date(credit, None) == (dt.date(2025, 6, 1), False)
    assert find_default_date(credit, cpty) == (dt.date(2025, 3, 1), True)
    assert find_default_date(_hazard(), None) == (None, False)


def test_combined_survival_and_integrals() -> None:
    """Joint survival is credit + prepay - 1; protection over a tiny interval is trapezoidal."""
    assert abs(combined_survival(0.9, 0.8, 1.0) - 0.7) < 1e-15
    assert abs(combined_survival(0.3, 0.4, 0.5) - (-0.6)) < 1e-15
    assert abs(protection_integral(0.0, 1.0, 0.99, 0.9, 0.89) - 0.5 * 1.99 * 0.01) < 1e-15


def test_combined_survival_is_one_without_default() -> None:
    """No credit default and no prepayment leaves the joint survival at exactly one."""
    assert combined_survival(1.0, 1.0, 1.0) == 1.0


@pytest.mark.parametrize(
    "credit_sp,prepay_sp,initial",
    [
        (0.9, 0.8, 1.0),
        (0.9, 0.3, 0.95),
        (0.3, 0.4, 0.5),
        (0.5000001, 0.4999999, 0.7),
        (0.4999999, 0.5000001, 0.7),
    ],
)
def test_combined_survival_branches_agree(credit_sp: float, prepay_sp: float, initial: float) -> None:
    """Every evaluation order gives (credit + prepay - 1) / initial."""
    expected = (credit_sp + prepay_sp - 1.0) / initial
    assert abs(combined_survival(credit_sp, prepay_sp, initial) - expected) < 1e-12


def test_integrals_when_negative_rate_cancels_hazard() -> None:
    """With hazard + rate = 0 the integrals reduce to h * D0 * S0 * T and its accrual moment."""
    d1, s1 = math.exp(0.02), math.exp(-0.02)
    assert abs(protection_integral(100.0, 1.0, d1, 1.0, s1) - 0.02) < 1e-12
    assert abs(accrual_on_default_integral(100.0, 10.0, 1.0, d1, 1.0, s1) - 0.02 * (10.0 + 50.0)) < 1e-10


@pytest.mark.parametrize("x", [0.9999e-3, 1.0001e-3, -0.9999e-3, -1.0001e-3, 0.05])
def test_protection_integral_near_cancellation(x: float) -> None:
    """Close to cancellation the integral is h * (1 - exp(-x)) / x on both sides of the series cut."""
    d1, s1 = math.exp(0.02 - x), math.exp(-0.02)
    expected = 0.02 * -math.expm1(-x) / x
    assert abs(protection_integral(100.0, 1.0, d1, 1.0, s1) - expected) < 1e-14


def _piecewise_hazard() -> HazardRateCurve:
    return HazardRateCurve(name="H", as_of=AS_OF, pillars=[0.5, 1.0, 2.0], hazard_rates=[0.01, 0.03, 0.02])


def _sloped_disc() -> ZeroRateCurve:
    return ZeroRateCurve(name="USD_DISC", as_of=AS_OF, pillars=[0.5, 2.0], zero_rates_cc=[0.01, 0.04])


def test_protection_additive_log_linear_daily_grid() -> None:
    """On a daily grid the log-linear protection is additive for non-flat curves."""
    drc = DefaultRiskCalculator(
        AS_OF, AS_OF, END, _piecewise_hazard(), log_linear_approximation=True, step_size=1, step_unit=TimeUnit.DAYS
    )
    df = _sloped_disc().interpolate
    mid = dt.date(2025, 11, 3)
    whole = drc.protection(AS_OF, END, True, df)
    split = drc.protection(AS_OF, mid, False, df) + drc.protection(mid, END, True, df)
    assert whole > 0.0
    assert abs(whole - split) < 1e-12


def test_accrual_on_default_additive_log_linear_daily_grid() -> None:
    """On a daily grid the log-linear accrual on default is additive for non-flat curves."""
    drc = DefaultRiskCalculator(
        AS_OF, AS_OF, END, _piecewise_hazard(), accrual_on_default=True,
        log_linear_approximation=True, step_size=1, step_unit=TimeUnit.DAYS,
    )
    df = _sloped_disc().interpolate
    ip = _coupon(dt.date(2025, 4, 1), dt.date(2025, 10, 1), accrued_fraction_at_default=0.5)
    mid = dt.date(2025, 7, 15)
    whole = drc.accrual_on_default(ip, df)
    split = drc.accrual_on_default_between(ip, ip.accrual_start, mid, df) + drc.accrual_on_default_between(
        ip, mid, ip.accrual_end, df
    )
    assert whole > 0.0
    assert abs(whole - split) < 1e-12


def test_protection_without_grid_is_additive_only_inside_a_constant_piece() -> None:
    """Without a grid one step spans the window, so splits are exact only where hazard and rate are constant."""
    drc = DefaultRiskCalculator(AS_OF, AS_OF, END, _piecewise_hazard(), log_linear_approximation=True)
    df = _disc().interpolate

    # hazard is constant between the one- and two-year pillars
    begin, mid, end = dt.date(2026, 2, 1), dt.date(2026, 6, 15), dt.date(2026, 12, 1)
    whole = drc.protection(begin, end, False, df)
    split = drc.protection(begin, mid, False, df) + drc.protection(mid, end, False, df)
    assert abs(whole - split) < 1e-12

    # across a hazard pillar the single step averages the two pieces
    mid = dt.date(2025, 11, 3)
    whole = drc.protection(AS_OF, END, False, df)
    split = drc.protection(AS_OF, mid, False, df) + drc.protection(mid, END, False, df)
    assert abs(whole - split) > 1e-6


def test_accrual_paid_on_default_flag_is_informational() -> None:
    """Accrual on default follows each coupon's accrued fraction, not the calculator flag."""
    df = _disc().interpolate
    ip = _coupon(dt.date(2025, 1, 1), dt.date(2025, 7, 1), accrued_fraction_at_default=0.5)
    flagged = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard(), accrual_on_default=True)
    plain = DefaultRiskCalculator(AS_OF, AS_OF, END, _hazard())
    assert flagged.accrual_paid_on_default and not plain.accrual_paid_on_default
    assert flagged.risky_discount(ip, df) == plain.risky_discount(ip, df)
