"""Pricer implementations for the registry-based pricing engine."""

from cashflows.pricers.base import BasePricer
from cashflows.pricers.cds_pricer import CDSPricer, build_premium_schedule
from cashflows.pricers.payment_stream_pricer import PaymentStreamPricer

__all__ = [
    "BasePricer",
    "CDSPricer",
    "PaymentStreamPricer",
    "build_premium_schedule",
]
