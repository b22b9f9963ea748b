"""CS01 risk measure (bump credit curve, reprice)."""

from __future__ import annotations

from dataclasses import dataclass

from cashflows.interfaces import Instrument
from cashflows.market import Market
from cashflows.risk.base import BaseRiskMeasure


@dataclass
class CS01Parallel(BaseRiskMeasure):
    """CS01: sensitivity to a parallel hazard shift of a credit curve."""

    hazard_curve_name: str
    bump_bp: float = 1.0

    @property
    def name(self) -> str:
        return f"CS01_{self.hazard_curve_name}"

    def compute(self, instrument: Instrument, market: Market) -> float:
        """PV(bumped) - PV(base) for a parallel hazard shift of bump_bp / 10000."""
        return self._reprice_with_bumped_curve(
            instrument, market, self.hazard_curve_name, self.bump_bp / 10000.0
        )
