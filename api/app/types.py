"""GraphQL types for the cashflow valuation API."""

from __future__ import annotations

import datetime
from typing import Optional

import strawberry


# --- Input types (request payloads) ---


@strawberry.input
class CurveInput:
    """Discount curve: name, as-of date, pillars (year fractions), zero rates (continuously compounded)."""

    name: str
    as_of: datetime.date
    pillars: list[float]
    zero_rates_cc: list[float]


@strawberry.input
class FxSpotInput:
    """FX spot rate for a pair (e.g. USDEUR)."""

    pair: str
    spot: float


@strawberry.input
class HazardCurveInput:
    """Hazard curve: piecewise-constant hazard rates; interpolate(date) returns S(date)."""

    name: str
    as_of: datetime.date
    pillars: list[float]
    hazard_rates: list[float]
    jump_date: Optional[datetime.date] = None


@strawberry.input
class MarketInput:
    """Market snapshot: curves, hazard curves, and FX spots."""

    curves: list[CurveInput]
    hazard_curves: Optional[list[HazardCurveInput]] = None
    fx_spot: Optional[list[FxSpotInput]] = None


@strawberry.input
class CDSInput:
    """Single-name CDS (protection buyer by default). Frequency and day count use enum names."""

    discount_curve: str
    survival_curve: str
    notional: float
    premium_rate: float
    effective_date: datetime.date
    maturity_date: datetime.date
    frequency: str = "QUARTERLY"
    day_count: str = "ACTUAL_360"
    recovery: float = 0.4
    protection_buyer: bool = True
    accrual_on_default: bool = True
    settle: Optional[datetime.date] = None


@strawberry.input
class FixedCouponStreamInput:
    """Fixed-coupon stream rolled from effective to maturity, with the principal repaid at maturity."""

    discount_curve: str
    notional: float
    coupon: float
    effective_date: datetime.date
    maturity_date: datetime.date
    frequency: str = "QUARTERLY"
    day_count: str = "ACTUAL_360"
    survival_curve: Optional[str] = None
    accrued_fraction_at_default: float = 0.0
    include_principal: bool = True
    settle: Optional[datetime.date] = None
    fx_pair: Optional[str] = None


# --- Output types (response payloads) ---


@strawberry.type
class RiskMeasures:
    """Risk measures: PV01 (parallel curve bump), CS01 (hazard bump)."""

    pv01: Optional[float] = None
    cs01: Optional[float] = None


@strawberry.type
class PricingResult:
    """Pricing result: NPV and optional risk measures."""

    npv: float
    risk_measures: Optional[RiskMeasures] = None


@strawberry.type
class PaymentRow:
    """One payment of a stream with its risky discount factor."""

    pay_date: datetime.date
    kind: str
    amount: float
    risky_discount: float
    accrual_start: Optional[datetime.date] = None
    accrual_end: Optional[datetime.date] = None
    accrual_factor: Optional[float] = None
    accrual_on_default: Optional[float] = None


@strawberry.type
class PaymentStreamTable:
    """Payment rows plus the stream PV."""

    npv: float
    rows: list[PaymentRow]
