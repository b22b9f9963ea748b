"""Service layer: convert GraphQL inputs to cashflow library objects and run valuation/risk."""

from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import Optional, TypeVar

from cashflows.curves import HazardRateCurve, ZeroRateCurve
from cashflows.dates import DayCount, Frequency, roll_periods
from cashflows.default_risk import DefaultRiskCalculator
from cashflows.market import Market
from cashflows.payments import FixedInterestPayment, InterestPayment, PrincipalExchange
from cashflows.pricing import price
from cashflows.products.cds import CDS
from cashflows.products.payment_stream import PaymentStream
from cashflows.risk import cs01_parallel, pv01_parallel
from cashflows.schedule import PaymentSchedule
from cashflows.valuation import normalized_function

from app.types import (
    CDSInput,
    CurveInput,
    FixedCouponStreamInput,
    HazardCurveInput,
    MarketInput,
    PaymentRow,
    PaymentStreamTable,
    PricingResult,
    RiskMeasures,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def _curve_from_input(c: CurveInput) -> ZeroRateCurve:
    """Build ZeroRateCurve from GraphQL CurveInput."""
    return ZeroRateCurve(
        name=c.name,
        as_of=c.as_of,
        pillars=list(c.pillars),
        zero_rates_cc=list(c.zero_rates_cc),
    )


def _hazard_curve_from_input(h: HazardCurveInput) -> HazardRateCurve:
    """Build HazardRateCurve from GraphQL HazardCurveInput."""
    return HazardRateCurve(
        name=h.name,
        as_of=h.as_of,
        pillars=list(h.pillars),
        hazard_rates=list(h.hazard_rates),
        jump_date=h.jump_date,
    )


def market_from_input(m: MarketInput) -> Market:
    """Build Market from GraphQL MarketInput."""
    if not m.curves:
        raise ValueError("market.curves must not be empty")
    curves: dict[str, ZeroRateCurve | HazardRateCurve] = {}
    for c in m.curves:
        curves[c.name] = _curve_from_input(c)
    if m.hazard_curves:
        for h in m.hazard_curves:
            curves[h.name] = _hazard_curve_from_input(h)
    fx_spot: dict[str, float] = {}
    if m.fx_spot:
        for fx in m.fx_spot:
            fx_spot[fx.pair] = fx.spot
    return Market(curves=curves, fx_spot=fx_spot)


def _validate_curve_in_market(market: Market, curve_name: str, context: str) -> None:
    if curve_name not in market.curves:
        raise ValueError(
            f"{context}: curve '{curve_name}' not found in market. "
            f"Available curves: {list(market.curves.keys())}"
        )


def _enum_from_name(enum_cls: type[E], name: str, context: str) -> E:
    try:
        return enum_cls[name]
    except KeyError:
        raise ValueError(
            f"{context}: unknown value '{name}'. Allowed: {[e.name for e in enum_cls]}"
        ) from None


def _risk_measures(
    instrument: CDS | PaymentStream,
    market: Market,
    pv01_curve_name: Optional[str],
    pv01_bump_bp: float,
    cs01_hazard_curve_name: Optional[str],
    cs01_bump_bp: float,
) -> Optional[RiskMeasures]:
    pv01_val = None
    cs01_val = None
    if pv01_curve_name is not None:
        _validate_curve_in_market(market, pv01_curve_name, "PV01")
        pv01_val = pv01_parallel(instrument, market, pv01_curve_name, bump_bp=pv01_bump_bp)
    if cs01_hazard_curve_name is not None:
        _validate_curve_in_market(market, cs01_hazard_curve_name, "CS01")
        cs01_val = cs01_parallel(instrument, market, cs01_hazard_curve_name, bump_bp=cs01_bump_bp)
    if pv01_val is None and cs01_val is None:
        return None
    return RiskMeasures(pv01=pv01_val, cs01=cs01_val)


def price_cds(
    cds: CDSInput,
    market: MarketInput,
    calculate_cs01: bool = False,
    cs01_hazard_curve_name: Optional[str] = None,
    cs01_bump_bp: float = 1.0,
    calculate_pv01: bool = False,
    pv01_curve_name: Optional[str] = None,
    pv01_bump_bp: float = 1.0,
) -> PricingResult:
    """Price a single-name CDS and optionally compute CS01 and PV01."""
    if cds.maturity_date <= cds.effective_date:
        raise ValueError("cds.maturity_date must be after cds.effective_date")
    if not 0.0 <= cds.recovery <= 1.0:
        raise ValueError("cds.recovery must be in [0, 1]")
    m = market_from_input(market)
    _validate_curve_in_market(m, cds.discount_curve, "CDS discount_curve")
    _validate_curve_in_market(m, cds.survival_curve, "CDS survival_curve")
    instrument = CDS(
        discount_curve=cds.discount_curve,
        survival_curve=cds.survival_curve,
        notional=cds.notional,
        premium_rate=cds.premium_rate,
        effective_date=cds.effective_date,
        maturity_date=cds.maturity_date,
        frequency=_enum_from_name(Frequency, cds.frequency, "cds.frequency"),
        day_count=_enum_from_name(DayCount, cds.day_count, "cds.day_count"),
        recovery=cds.recovery,
        protection_buyer=cds.protection_buyer,
        accrual_on_default=cds.accrual_on_default,
        settle=cds.settle,
    )
    npv = price(instrument, m)
    logger.info("Priced CDS on %s to %s: npv=%.2f", cds.survival_curve, cds.maturity_date, npv)
    risk_measures = _risk_measures(
        instrument,
        m,
        (pv01_curve_name or cds.discount_curve) if calculate_pv01 else None,
        pv01_bump_bp,
        (cs01_hazard_curve_name or cds.survival_curve) if calculate_cs01 else None,
        cs01_bump_bp,
    )
    return PricingResult(npv=npv, risk_measures=risk_measures)


def build_fixed_coupon_stream(stream: FixedCouponStreamInput) -> PaymentStream:
    """Roll fixed coupons from the effective date to maturity (last period ends at maturity)."""
    if stream.maturity_date <= stream.effective_date:
        raise ValueError("stream.maturity_date must be after stream.effective_date")
    frequency = _enum_from_name(Frequency, stream.frequency, "stream.frequency")
    day_count = _enum_from_name(DayCount, stream.day_count, "stream.day_count")
    schedule = PaymentSchedule(
        FixedInterestPayment(
            pay_date=end,
            accrual_start=start,
            accrual_end=end,
            notional=stream.notional,
            coupon=stream.coupon,
            day_count=day_count,
            accrued_fraction_at_default=stream.accrued_fraction_at_default,
        )
        for start, end in roll_periods(stream.effective_date, stream.maturity_date, frequency)
    )
    if stream.include_principal:
        schedule.add_payment(PrincipalExchange(pay_date=stream.maturity_date, notional=stream.notional))
    return PaymentStream(
        schedule=schedule,
        discount_curve=stream.discount_curve,
        survival_curve=stream.survival_curve,
        settle=stream.settle,
        fx_pair=stream.fx_pair,
    )


def _validated_stream(stream: FixedCouponStreamInput, m: Market) -> PaymentStream:
    if not 0.0 <= stream.accrued_fraction_at_default <= 1.0:
        raise ValueError("stream.accruedFractionAtDefault must be in [0, 1]")
    _validate_curve_in_market(m, stream.discount_curve, "PaymentStream discount_curve")
    if stream.survival_curve is not None:
        _validate_curve_in_market(m, stream.survival_curve, "PaymentStream survival_curve")
    if stream.fx_pair is not None and stream.fx_pair not in m.fx_spot:
        raise ValueError(
            f"PaymentStream: FX pair '{stream.fx_pair}' not found in market. "
            f"Available pairs: {list(m.fx_spot.keys())}"
        )
    return build_fixed_coupon_stream(stream)


def value_payment_stream(
    stream: FixedCouponStreamInput,
    market: MarketInput,
    calculate_pv01: bool = False,
    pv01_curve_name: Optional[str] = None,
    pv01_bump_bp: float = 1.0,
    calculate_cs01: bool = False,
    cs01_hazard_curve_name: Optional[str] = None,
    cs01_bump_bp: float = 1.0,
) -> PricingResult:
    """Value a fixed-coupon stream and optionally compute PV01 and CS01."""
    m = market_from_input(market)
    instrument = _validated_stream(stream, m)
    npv = price(instrument, m)
    cs01_curve = cs01_hazard_curve_name or stream.survival_curve
    if calculate_cs01 and cs01_curve is None:
        raise ValueError("CS01: no hazard curve given and the stream has no survival_curve")
    risk_measures = _risk_measures(
        instrument,
        m,
        (pv01_curve_name or stream.discount_curve) if calculate_pv01 else None,
        pv01_bump_bp,
        cs01_curve if calculate_cs01 else None,
        cs01_bump_bp,
    )
    return PricingResult(npv=npv, risk_measures=risk_measures)


def payment_stream_table(stream: FixedCouponStreamInput, market: MarketInput) -> PaymentStreamTable:
    """One row per payment: amount, risky discount factor and, for risky coupons, accrual on default."""
    m = market_from_input(market)
    instrument = _validated_stream(stream, m)
    disc = m.curve(instrument.discount_curve)
    settle: dt.date = instrument.settle if instrument.settle is not None else disc.as_of
    df = normalized_function(disc.interpolate, disc.as_of)
    assert df is not None

    drc = None
    if instrument.survival_curve is not None:
        drc = DefaultRiskCalculator(
            disc.as_of,
            settle,
            stream.maturity_date,
            m.curve(instrument.survival_curve),
            accrual_on_default=stream.accrued_fraction_at_default > 0.0,
        )
    survival_fn = drc.survival_probability if drc is not None else None

    rows: list[PaymentRow] = []
    for payment in instrument.schedule:
        row = PaymentRow(
            pay_date=payment.pay_date,
            kind=payment.kind.value,
            amount=payment.amount,
            risky_discount=payment.risky_discount(df, survival_fn),
        )
        if isinstance(payment, InterestPayment):
            row.accrual_start = payment.accrual_start
            row.accrual_end = payment.accrual_end
            row.accrual_factor = payment.accrual_factor
            if drc is not None and payment.accrued_fraction_at_default > 0.0:
                row.accrual_on_default = drc.accrual_on_default(payment, df)
        rows.append(row)
    npv = price(instrument, m)
    logger.info("Built payment table with %d rows: npv=%.2f", len(rows), npv)
    return PaymentStreamTable(npv=npv, rows=rows)
