"""Base pricer abstract class for product pricing implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cashflows.interfaces import Instrument
from cashflows.market import Market


class BasePricer(ABC):
    """Abstract base class for product pricers.

    Subclasses implement can_price() and npv() for specific product types,
    turning a data-only product plus a Market into a present value.
    """

    @abstractmethod
    def can_price(self, instrument: Instrument) -> bool:
        """Return True if this pricer handles the product type."""
        ...

    @abstractmethod
    def npv(self, instrument: Instrument, market: Market) -> float:
        """Compute present value."""
        ...
