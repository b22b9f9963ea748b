"""
Pricing engine: computes NPV for products given a market snapshot.

Design intent:
- Products are **data only** (a schedule or contract terms plus curve names).
- This engine uses a **registry of pricers** for dispatch, so a new product
  type only needs a new pricer registered with `engine.register(pricer)`.
"""

from __future__ import annotations

import logging

from cashflows.interfaces import Instrument
from cashflows.market import Market
from cashflows.pricers import BasePricer

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Registry-based pricing engine.

    Pricers are registered at initialization and dispatched based on
    can_price() checks. First matching pricer wins.
    """

    def __init__(self) -> None:
        self._pricers: list[BasePricer] = []

    def register(self, pricer: BasePricer) -> None:
        """Register a pricer for dispatch.

        Order matters: first matching pricer wins.
        """
        self._pricers.append(pricer)

    def npv(self, instrument: Instrument, market: Market) -> float:
        """Dispatch to appropriate pricer."""
        for pricer in self._pricers:
            if pricer.can_price(instrument):
                logger.debug("Pricing %s with %s", type(instrument).__name__, type(pricer).__name__)
                return pricer.npv(instrument, market)
        raise ValueError(
            f"No pricer registered for {type(instrument).__name__}. "
            "Register a pricer with engine.register(pricer)."
        )


def create_default_engine() -> PricingEngine:
    """Factory for default engine with all built-in pricers registered."""
    from cashflows.pricers import CDSPricer, PaymentStreamPricer

    engine = PricingEngine()
    engine.register(CDSPricer())
    engine.register(PaymentStreamPricer())
    return engine
