"""Parallel PV01 risk measure (bump-and-reprice)."""

from __future__ import annotations

from dataclasses import dataclass

from cashflows.interfaces import Instrument
from cashflows.market import Market
from cashflows.risk.base import BaseRiskMeasure


@dataclass
class PV01Parallel(BaseRiskMeasure):
    """Parallel PV01: sensitivity to a parallel shift of a discount curve."""

    curve_name: str
    bump_bp: float = 1.0

    @property
    def name(self) -> str:
        return f"PV01_{self.curve_name}"

    def compute(self, instrument: Instrument, market: Market) -> float:
        """PV(bumped) - PV(base); zero rates shift by bump_bp / 10000."""
        return self._reprice_with_bumped_curve(instrument, market, self.curve_name, self.bump_bp / 10000.0)
