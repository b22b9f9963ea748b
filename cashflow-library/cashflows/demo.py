"""Demo: sample USD curves, a floating-rate note under credit risk, and a CDS with risks."""

import datetime as dt
import logging

from cashflows.curves import HazardRateCurve, ZeroRateCurve
from cashflows.dates import DayCount, Frequency, add_frequency, roll_periods
from cashflows.fixings import CompoundingConvention
from cashflows.market import Market
from cashflows.payments import FloatingInterestPayment, PrincipalExchange
from cashflows.pricers import CDSPricer
from cashflows.pricing import price
from cashflows.products.cds import CDS
from cashflows.products.payment_stream import PaymentStream
from cashflows.projection import ForwardRateProjector
from cashflows.risk import cs01_parallel, pv01_parallel
from cashflows.schedule import PaymentSchedule


def floating_note(as_of: dt.date, curve: ZeroRateCurve, notional: float) -> PaymentSchedule:
    """3Y quarterly note on daily-compounded overnight rate + 50bp, principal at maturity."""
    projector = ForwardRateProjector(as_of=as_of, reference_curve=curve, approximate=True)
    maturity = add_frequency(as_of, Frequency.ANNUAL, 3)
    schedule = PaymentSchedule(
        FloatingInterestPayment(
            pay_date=end,
            accrual_start=start,
            accrual_end=end,
            notional=notional,
            day_count=DayCount.ACTUAL_360,
            rate_projector=projector,
            spread=0.005,
            compounding_frequency=Frequency.DAILY,
            compounding_convention=CompoundingConvention.ISDA,
        )
        for start, end in roll_periods(as_of, maturity, Frequency.QUARTERLY)
    )
    schedule.add_payment(PrincipalExchange(pay_date=maturity, notional=notional))
    return schedule


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    as_of = dt.date(2025, 1, 15)

    # Sample USD curve and hazard curve
    pillars = [0.5, 1.0, 2.0, 5.0, 10.0]
    usd_rates = [0.045, 0.043, 0.040, 0.038, 0.037]
    usd_curve = ZeroRateCurve(name="USD_DISC", as_of=as_of, pillars=pillars, zero_rates_cc=usd_rates)
    hazard_curve = HazardRateCurve(
        name="CORP_HAZ",
        as_of=as_of,
        pillars=pillars,
        hazard_rates=[0.01, 0.012, 0.015, 0.018, 0.02],
    )
    market = Market(
        curves={"USD_DISC": usd_curve, "CORP_HAZ": hazard_curve},
        fx_spot={"USDEUR": 0.92},
    )

    # 1) Floating-rate note 3Y 10,000,000 under CORP_HAZ credit risk, reported in EUR
    note = PaymentStream(
        schedule=floating_note(as_of, usd_curve, 10_000_000),
        discount_curve="USD_DISC",
        survival_curve="CORP_HAZ",
        fx_pair="USDEUR",
    )
    pv_note = price(note, market)
    pv01_note = pv01_parallel(note, market, "USD_DISC", bump_bp=1.0)
    cs01_note = cs01_parallel(note, market, "CORP_HAZ", bump_bp=1.0)

    # 2) CDS 5Y 10,000,000 notional 100bp spread
    cds = CDS(
        discount_curve="USD_DISC",
        survival_curve="CORP_HAZ",
        notional=10_000_000,
        premium_rate=0.01,
        effective_date=as_of,
        maturity_date=dt.date(2030, 3, 20),
        recovery=0.4,
    )
    pv_cds = price(cds, market)
    cs01_cds = cs01_parallel(cds, market, "CORP_HAZ", bump_bp=1.0)
    fair = CDSPricer.fair_spread(cds, market)

    print("=== Cashflow Valuation Demo ===\n")
    print(f"Market as of {as_of}: USD_DISC, CORP_HAZ curves, USDEUR = 0.92\n")
    print("1) Floating-rate note (3Y quarterly, SOFR-style compounding + 50bp, 10M USD)")
    print(f"   PV (EUR) = {pv_note:,.2f}")
    print(f"   PV01     = {pv01_note:,.2f}")
    print(f"   CS01     = {cs01_note:,.2f}\n")
    print("2) CDS (5Y, 10M notional, 100bp spread, protection buyer)")
    print(f"   PV     = {pv_cds:,.2f}")
    print(f"   CS01   = {cs01_cds:,.2f}")
    print(f"   Fair   = {fair * 10000:,.2f}bp\n")
    print("Done.")


if __name__ == "__main__":
    main()
