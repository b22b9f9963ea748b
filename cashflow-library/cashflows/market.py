"""
Market snapshot container.

`Market` is a simple in-memory snapshot of the valuation inputs:
- discount and credit curves, keyed by a name (e.g. "USD_DISC", "CORP_HAZ")
- FX spot rates, keyed by a pair string (e.g. "EURUSD")

Products reference curves by name only, so valuation stays a pure function
of (product, market).
"""

from __future__ import annotations

from copy import deepcopy

from cashflows.interfaces import Curve


class Market:
    """
    Market snapshot: curves (by name) and FX spot rates (pair -> rate).
    Immutable-style: with_curve / with_fx return new Market instances.
    """

    def __init__(
        self,
        curves: dict[str, Curve] | None = None,
        fx_spot: dict[str, float] | None = None,
    ) -> None:
        self.curves: dict[str, Curve] = curves.copy() if curves else {}
        self.fx_spot: dict[str, float] = fx_spot.copy() if fx_spot else {}

    def curve(self, name: str) -> Curve:
        """Return a discount or credit curve by name."""
        try:
            return self.curves[name]
        except KeyError:
            raise KeyError(f"Curve '{name}' not in market; available: {sorted(self.curves)}") from None

    def fx(self, pair: str) -> float:
        """Return the FX spot for a pair such as 'USDEUR' (quote units per base unit)."""
        try:
            return self.fx_spot[pair]
        except KeyError:
            raise KeyError(f"FX pair '{pair}' not in market; available: {sorted(self.fx_spot)}") from None

    def with_curve(self, name: str, curve: Curve) -> "Market":
        """Return a new Market with the given curve updated/added."""
        new_curves = deepcopy(self.curves)
        new_curves[name] = curve
        return Market(curves=new_curves, fx_spot=self.fx_spot)

    def with_fx(self, pair: str, spot: float) -> "Market":
        """Return a new Market with the given FX pair updated/added."""
        new_fx = dict(self.fx_spot)
        new_fx[pair] = spot
        return Market(curves=self.curves, fx_spot=new_fx)
