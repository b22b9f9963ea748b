"""Base class for risk measure implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cashflows.interfaces import Instrument
from cashflows.market import Market


class BaseRiskMeasure(ABC):
    """Base class for bump-and-reprice risk measures."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""
        ...

    @abstractmethod
    def compute(self, instrument: Instrument, market: Market) -> float:
        """Compute the risk measure value."""
        ...

    def _reprice_with_bumped_curve(
        self, instrument: Instrument, market: Market, curve_name: str, bump: float
    ) -> float:
        """PV(bumped) - PV(base) for an additive parallel bump of one named curve."""
        from cashflows.pricing import price

        bumped_market = market.with_curve(curve_name, market.curve(curve_name).bumped(bump))
        return price(instrument, bumped_market) - price(instrument, market)
