"""Pricer for single-name CDS."""

from __future__ import annotations

import datetime as dt
import logging

from cashflows.dates import roll_periods
from cashflows.default_risk import DefaultRiskCalculator
from cashflows.errors import InvalidArgumentError
from cashflows.interfaces import DiscountFunction, Instrument
from cashflows.market import Market
from cashflows.payments import FixedInterestPayment, RecoveryPayment
from cashflows.pricers.base import BasePricer
from cashflows.products.cds import CDS
from cashflows.schedule import PaymentSchedule, get_recovery_payments, set_protection_start
from cashflows.valuation import normalized_function, value_if_will_default

logger = logging.getLogger(__name__)


def build_premium_schedule(cds: CDS) -> PaymentSchedule:
    """Premium coupons rolled from the effective date; the last period ends at maturity."""
    if cds.maturity_date <= cds.effective_date:
        raise InvalidArgumentError("maturity_date must be after effective_date")
    schedule = PaymentSchedule()
    for start, end in roll_periods(cds.effective_date, cds.maturity_date, cds.frequency):
        schedule.add_payment(
            FixedInterestPayment(
                pay_date=end,
                accrual_start=start,
                accrual_end=end,
                notional=cds.notional,
                day_count=cds.day_count,
                coupon=cds.premium_rate,
                accrued_fraction_at_default=0.5 if cds.accrual_on_default else 0.0,
                include_end_date_protection=cds.include_maturity_protection and end == cds.maturity_date,
            )
        )
    return schedule


class _CDSInputs:
    """Schedule, recovery legs and default-risk calculator for one valuation."""

    def __init__(self, cds: CDS, market: Market) -> None:
        disc = market.curve(cds.discount_curve)
        surv = market.curve(cds.survival_curve)
        self.settle: dt.date = cds.settle if cds.settle is not None else disc.as_of
        self.discount_fn: DiscountFunction = disc.interpolate
        self.schedule = build_premium_schedule(cds)
        self.recoveries = get_recovery_payments(self.schedule, False, lambda _: cds.recovery)
        self.default_risk = DefaultRiskCalculator(
            disc.as_of,
            self.settle,
            cds.maturity_date,
            surv,
            accrual_on_default=cds.accrual_on_default,
            log_linear_approximation=cds.log_linear_approximation,
            step_size=cds.step_size,
            step_unit=cds.step_unit,
        )
        df = normalized_function(self.discount_fn, self.settle)
        assert df is not None
        self.df: DiscountFunction = df


class CDSPricer(BasePricer):
    """Pricer for single-name CDS (premium + protection legs under DefaultRiskCalculator)."""

    def can_price(self, instrument: Instrument) -> bool:
        return isinstance(instrument, CDS)

    def npv(self, instrument: Instrument, market: Market) -> float:
        """
        CDS NPV for protection buyer: pv_protection - pv_premium.
        Flip sign if protection_buyer=False.
        """
        assert isinstance(instrument, CDS)
        cds = instrument
        inputs = _CDSInputs(cds, market)
        if inputs.default_risk.default_date is not None:
            npv = self._npv_known_default(cds, inputs)
        else:
            npv = self._pv_protection_leg(inputs) - self._pv_premium_leg(inputs)
        return npv if cds.protection_buyer else -npv

    @staticmethod
    def _pv_premium_leg(inputs: _CDSInputs) -> float:
        """Premium leg: sum_i amount_i * risky_discount_i (accrual on default included)."""
        pv = 0.0
        for ip in inputs.schedule.get_payments_by_type(FixedInterestPayment):
            if ip.accrual_end <= inputs.settle:
                continue
            pv += ip.amount * inputs.default_risk.risky_discount(ip, inputs.df)
        return pv

    @staticmethod
    def _pv_protection_leg(inputs: _CDSInputs) -> float:
        """Protection leg: sum_i N(1-R) * protection_i, first period starting at settle."""
        schedule = PaymentSchedule(inputs.recoveries)
        pv = 0.0
        for _, payments in set_protection_start(schedule, inputs.settle):
            for rp in payments:
                if not isinstance(rp, RecoveryPayment) or rp.end_date <= inputs.settle:
                    continue
                pv -= rp.amount * inputs.default_risk.protection_for(rp, inputs.df)
        return pv

    @staticmethod
    def _risky_annuity(inputs: _CDSInputs) -> float:
        annuity = 0.0
        for ip in inputs.schedule.get_payments_by_type(FixedInterestPayment):
            if ip.accrual_end <= inputs.settle:
                continue
            annuity += ip.notional * ip.accrual_factor * inputs.default_risk.risky_discount(ip, inputs.df)
        return annuity

    @staticmethod
    def _npv_known_default(cds: CDS, inputs: _CDSInputs) -> float:
        drc = inputs.default_risk
        logger.debug("CDS on %s with known default on %s", cds.survival_curve, drc.default_date)
        args = (inputs.schedule, inputs.settle, inputs.settle, inputs.discount_fn, drc, 1.0 - cds.recovery)
        fees = value_if_will_default(*args, include_protection=False)
        protection = value_if_will_default(*args, include_fees=False)
        return (protection or 0.0) - (fees or 0.0)

    @staticmethod
    def fair_spread(cds: CDS, market: Market) -> float:
        """Fair spread s* such that NPV=0: s* = pv_protection / risky_annuity."""
        inputs = _CDSInputs(cds, market)
        risky_annuity = CDSPricer._risky_annuity(inputs)
        if risky_annuity <= 0:
            return 0.0
        return CDSPricer._pv_protection_leg(inputs) / risky_annuity
