"""
Risk measures implemented via "bump and reprice".

PV01Parallel and CS01Parallel are composable measure objects; the
pv01_parallel and cs01_parallel functions are one-call shortcuts.
"""

from __future__ import annotations

from cashflows.market import Market
from cashflows.pricing import Trade
from cashflows.risk.base import BaseRiskMeasure
from cashflows.risk.cs01 import CS01Parallel
from cashflows.risk.pv01 import PV01Parallel


def pv01_parallel(
    trade: Trade,
    market: Market,
    curve_name: str,
    bump_bp: float = 1.0,
) -> float:
    """
    PV01: change in PV when the curve is bumped by bump_bp basis points (parallel).
    bump_bp is in basis points; bump = bump_bp / 10000 (additive to zero rates).
    Returns PV(bumped) - PV(base).
    """
    return PV01Parallel(curve_name=curve_name, bump_bp=bump_bp).compute(trade, market)


def cs01_parallel(
    trade: Trade,
    market: Market,
    hazard_curve_name: str,
    bump_bp: float = 1.0,
) -> float:
    """
    CS01: change in PV when the credit curve is bumped by bump_bp basis points (parallel).
    Returns PV(bumped) - PV(base).
    """
    return CS01Parallel(hazard_curve_name=hazard_curve_name, bump_bp=bump_bp).compute(trade, market)


__all__ = [
    "BaseRiskMeasure",
    "PV01Parallel",
    "CS01Parallel",
    "pv01_parallel",
    "cs01_parallel",
]
