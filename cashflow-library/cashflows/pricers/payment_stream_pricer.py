"""Pricer for generic payment streams."""

from __future__ import annotations

from cashflows.interfaces import Instrument
from cashflows.market import Market
from cashflows.pricers.base import BasePricer
from cashflows.products.payment_stream import PaymentStream
from cashflows.valuation import calculate_schedule_pv


class PaymentStreamPricer(BasePricer):
    """Values a PaymentStream with survival-weighted discounting."""

    def can_price(self, instrument: Instrument) -> bool:
        return isinstance(instrument, PaymentStream)

    def npv(self, instrument: Instrument, market: Market) -> float:
        """PV as of the discount curve date, converted by `fx_pair` when set."""
        assert isinstance(instrument, PaymentStream)
        stream = instrument
        disc = market.curve(stream.discount_curve)
        surv = market.curve(stream.survival_curve) if stream.survival_curve else None
        cpty = market.curve(stream.counterparty_curve) if stream.counterparty_curve else None
        settle = stream.settle if stream.settle is not None else disc.as_of
        pv = calculate_schedule_pv(
            stream.schedule,
            disc.as_of,
            settle,
            disc.interpolate,
            survival_curve=surv,
            counterparty_curve=cpty,
            correlation=stream.correlation,
            step_size=stream.step_size,
            step_unit=stream.step_unit,
            include_settle_payments=stream.include_settle_payments,
            discounting_accrued=stream.discounting_accrued,
            log_linear_approximation=stream.log_linear_approximation,
        )
        if stream.fx_pair:
            pv *= market.fx(stream.fx_pair)
        return pv
