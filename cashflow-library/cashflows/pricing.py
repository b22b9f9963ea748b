"""
Pricing entrypoint.

Most users of the library should only need `price(trade, market)`.
It delegates to a default `PricingEngine` instance; advanced users can build
and configure their own engines.
"""

from typing import TypeAlias

from cashflows.engine import create_default_engine
from cashflows.market import Market
from cashflows.products.cds import CDS
from cashflows.products.payment_stream import PaymentStream


Trade: TypeAlias = CDS | PaymentStream

_default_engine = create_default_engine()


def price(trade: Trade, market: Market) -> float:
    """Return present value of trade (via default registry-based engine)."""
    return _default_engine.npv(trade, market)
