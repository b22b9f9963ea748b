"""Cashflow library: payments, schedules, default-risk valuation, products, pricing, and risk."""

from cashflows.curves import HazardRateCurve, SurvivalCurve, ZeroRateCurve
from cashflows.default_risk import DefaultRiskCalculator, TimeGridBuilder
from cashflows.engine import PricingEngine, create_default_engine
from cashflows.errors import (
    CashflowError,
    EffectiveRateError,
    InvalidArgumentError,
    MissingFixingError,
    UnsupportedConfigurationError,
)
from cashflows.interfaces import Curve, Instrument, Pricer, RiskMeasure
from cashflows.market import Market
from cashflows.payments import Payment, PaymentKind, PaymentVariant
from cashflows.pricers import BasePricer
from cashflows.pricing import price, Trade
from cashflows.products.cds import CDS
from cashflows.products.payment_stream import PaymentStream
from cashflows.risk import (
    CS01Parallel,
    PV01Parallel,
    cs01_parallel,
    pv01_parallel,
)
from cashflows.schedule import PaymentSchedule
from cashflows.settings import CashflowSettings, configure, get_settings

__all__ = [
    "Curve",
    "Instrument",
    "Pricer",
    "RiskMeasure",
    "ZeroRateCurve",
    "HazardRateCurve",
    "SurvivalCurve",
    "CashflowError",
    "MissingFixingError",
    "EffectiveRateError",
    "InvalidArgumentError",
    "UnsupportedConfigurationError",
    "CashflowSettings",
    "configure",
    "get_settings",
    "Payment",
    "PaymentKind",
    "PaymentVariant",
    "PaymentSchedule",
    "DefaultRiskCalculator",
    "TimeGridBuilder",
    "PricingEngine",
    "create_default_engine",
    "Market",
    "BasePricer",
    "price",
    "Trade",
    "CDS",
    "PaymentStream",
    "PV01Parallel",
    "CS01Parallel",
    "pv01_parallel",
    "cs01_parallel",
]
