"""Tests for PV01, CS01 and FX conversion of payment streams."""

import datetime as dt

from cashflows.curves import HazardRateCurve, ZeroRateCurve
from cashflows.dates import DayCount
from cashflows.market import Market
from cashflows.payments import BasicPayment, FixedInterestPayment, PrincipalExchange
from cashflows.products.payment_stream import PaymentStream
from cashflows.pricing import price
from cashflows.risk import cs01_parallel, pv01_parallel
from cashflows.schedule import PaymentSchedule

AS_OF = dt.date(2025, 1, 2)


def _fixed_note() -> PaymentSchedule:
    dates = [AS_OF, dt.date(2025, 7, 2), dt.date(2026, 1, 2), dt.date(2026, 7, 2), dt.date(2027, 1, 2)]
    schedule = PaymentSchedule(
        FixedInterestPayment(
            pay_date=b,
            accrual_start=a,
            accrual_end=b,
            notional=1_000_000,
            coupon=0.045,
            day_count=DayCount.THIRTY_360,
        )
        for a, b in zip(dates[:-1], dates[1:])
    )
    schedule.add_payment(PrincipalExchange(pay_date=dates[-1], notional=1_000_000))
    return schedule


def _market() -> Market:
    disc = ZeroRateCurve(name="C", as_of=AS_OF, pillars=[1.0, 2.0], zero_rates_cc=[0.04, 0.04])
    hazard = HazardRateCurve(name="HAZ", as_of=AS_OF, pillars=[1.0, 2.0], hazard_rates=[0.02, 0.02])
    return Market(curves={"C": disc, "HAZ": hazard}, fx_spot={"USDEUR": 0.92})


def test_pv01_fixed_note_negative() -> None:
    """PV01 for a fixed note: bumping rates up => DF down => PV down => PV01 negative."""
    stream = PaymentStream(schedule=_fixed_note(), discount_curve="C")
    assert pv01_parallel(stream, _market(), "C", bump_bp=1.0) < 0


def test_pv01_scale_sanity() -> None:
    """PV01 magnitude: 1bp bump on a 2Y bullet ~ -PV * 0.0001 * T."""
    maturity = dt.date(2027, 1, 2)
    stream = PaymentStream(
        schedule=PaymentSchedule([BasicPayment(pay_date=maturity, fixed_amount=1_000_000)]),
        discount_curve="C",
    )
    market = _market()
    pv_base = price(stream, market)
    pv01 = pv01_parallel(stream, market, "C", bump_bp=1.0)
    years = (maturity - AS_OF).days / 365.0
    approx_dv01 = -pv_base * years * 0.0001
    assert abs(pv01 - approx_dv01) < abs(approx_dv01) * 0.01


def test_cs01_credit_risky_note_negative() -> None:
    """The note holder loses value when the issuer's hazard rate rises."""
    stream = PaymentStream(schedule=_fixed_note(), discount_curve="C", survival_curve="HAZ")
    market = _market()
    assert cs01_parallel(stream, market, "HAZ", bump_bp=1.0) < 0
    riskless = PaymentStream(schedule=_fixed_note(), discount_curve="C")
    assert price(stream, market) < price(riskless, market)


def test_fx_pair_converts_pv() -> None:
    """With fx_pair set, the PV is multiplied by that spot."""
    market = _market()
    domestic = price(PaymentStream(schedule=_fixed_note(), discount_curve="C"), market)
    foreign = PaymentStream(schedule=_fixed_note(), discount_curve="C", fx_pair="USDEUR")
    assert abs(price(foreign, market) - 0.92 * domestic) < 1e-6
    assert abs(price(foreign, market.with_fx("USDEUR", 1.0)) - domestic) < 1e-6


def test_bumping_leaves_base_market_untouched() -> None:
    """Bump-and-reprice works on a copy of the market."""
    market = _market()
    stream = PaymentStream(schedule=_fixed_note(), discount_curve="C")
    before = price(stream, market)
    pv01_parallel(stream, market, "C", bump_bp=10.0)
    assert price(stream, market) == before
