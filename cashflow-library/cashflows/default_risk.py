"""
Default-risk discounting: survival-weighted discount factors, accrual on
default and protection-leg integrals.

Integrals over a credit-risk window are evaluated either in one step or, when
a step size is configured, step by step on a time grid anchored at the credit
risk begin date. Two per-step approximations are available:

- linear: average discount factor times the survival drop;
- log-linear: piecewise-constant hazard h and short rate r fitted on the step,
  with the closed forms

      protection        V = h / (h + r) * D0 * S0 * (1 - exp(-(h + r) * dt))
      accrual on default V = h / (h + r) * D0 * S0 * (a0 - a1 * exp(-(h + r) * dt)
                                                     + (1 - exp(-(h + r) * dt)) / (h + r))

  with time measured in calendar days.

Protection summed over a split of [begin, end) on grid points equals the
protection over [begin, end).
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from typing import Callable, Protocol

from scipy.stats import norm

from cashflows.curves import SurvivalCurve
from cashflows.dates import DayCount, TimeUnit, add, diff
from cashflows.errors import InvalidArgumentError
from cashflows.interfaces import DiscountFunction
from cashflows.payments import ContingentPayment, InterestPayment, Payment
from cashflows.settings import get_settings

logger = logging.getLogger(__name__)

_SMALL_INTERVAL = 1.0 / 256
_MIN_SURVIVAL = 1e-14
_SERIES_THRESHOLD = 1e-3


class SurvivalSource(Protocol):
    """A curve returning survival probabilities by date, with an optional jump date."""

    def interpolate(self, date: dt.date) -> float:
        ...


@dataclass(frozen=True)
class TimeGridBuilder:
    """
    Integration grid of `step_size` units anchored at `anchor`.

    `grid(begin, end)` returns the anchored points strictly inside
    (begin, end) followed by `end`; an empty list when end <= begin.
    """

    step_size: int
    step_unit: TimeUnit
    anchor: dt.date | None = None

    def __post_init__(self) -> None:
        if self.step_size <= 0:
            raise InvalidArgumentError("step_size must be positive")
        if self.step_unit is TimeUnit.NONE:
            raise InvalidArgumentError("step_unit must not be NONE")

    def grid(self, begin: dt.date, end: dt.date) -> list[dt.date]:
        if end <= begin:
            return []
        anchor = self.anchor if self.anchor is not None and self.anchor <= begin else begin
        points: list[dt.date] = []
        k = 1
        if self.step_unit is TimeUnit.DAYS:
            k = max(1, (begin - anchor).days // self.step_size)
        while True:
            date = add(anchor, k * self.step_size, self.step_unit)
            k += 1
            if date >= end:
                break
            if date > begin:
                points.append(date)
        points.append(end)
        return points


def combined_survival(credit_sp: float, prepay_sp: float, initial_survival: float) -> float:
    """Probability of neither default nor prepayment, normalised by `initial_survival`."""
    # branches are algebraically equal; each avoids cancellation in its range
    if prepay_sp > 0.5:
        return credit_sp / initial_survival + (prepay_sp - 1.0) / initial_survival
    if credit_sp > 0.5:
        return (credit_sp - 1.0) / initial_survival + prepay_sp / initial_survival
    return (credit_sp + prepay_sp - 1.0) / initial_survival


def _exp_integral(x: float) -> float:
    """(1 - e^-x) / x, with its series near zero where hazard and rate cancel."""
    if abs(x) < _SERIES_THRESHOLD:
        return 1.0 - x / 2.0 + x * x / 6.0 - x * x * x / 24.0
    return -math.expm1(-x) / x


def _exp_moment(x: float) -> float:
    """(1 - (1 + x) e^-x) / x^2, the first moment of e^-xu on [0, 1]."""
    if abs(x) < _SERIES_THRESHOLD:
        return 0.5 - x / 3.0 + x * x / 8.0 - x * x * x / 30.0
    return (-math.expm1(-x) - x * math.exp(-x)) / (x * x)


def accrual_on_default_integral(
    dt_days: float, a0: float, d0: float, d1: float, s0: float, s1: float
) -> float:
    """Integral of a(t) D(t) (-dS(t)) over one step, a(t) = a0 + t."""
    if abs(dt_days) < _SMALL_INTERVAL:
        a1 = a0 + dt_days
        return 0.5 * (a0 * d0 + a1 * d1) * (s0 - s1)
    if s0 <= 0.0 or d0 <= 0.0:
        return 0.0
    s_ratio = s1 / s0
    if s_ratio <= 0.0:
        # infinite hazard: default right at the step start
        return s0 * d0 * a0
    d_ratio = d1 / d0
    if d_ratio <= 0.0:
        return 0.0
    # integrated hazard and hazard-plus-rate over the step
    hazard = -math.log(s_ratio)
    x = -math.log(d_ratio * s_ratio)
    return hazard * s0 * d0 * (a0 * _exp_integral(x) + dt_days * _exp_moment(x))


def protection_integral(dt_days: float, d0: float, d1: float, s0: float, s1: float) -> float:
    """Integral of D(t) (-dS(t)) over one step."""
    if abs(dt_days) < _SMALL_INTERVAL:
        return 0.5 * (d0 + d1) * (s0 - s1)
    if s0 <= 0.0 or d0 <= 0.0:
        return 0.0
    s_ratio = s1 / s0
    if s_ratio <= 0.0:
        return s0 * d0
    d_ratio = d1 / d0
    if d_ratio <= 0.0:
        return 0.0
    return -math.log(s_ratio) * d0 * s0 * _exp_integral(-math.log(d_ratio * s_ratio))


def _protection_linear(
    step_begin: dt.date, step_end: dt.date,
    df_begin: float, df_end: float,
    sp_begin: float, sp_end: float,
    time_fraction: float,
) -> float:
    avg_df = (1.0 - time_fraction) * df_begin + time_fraction * df_end
    return avg_df * (sp_begin - sp_end)


def _protection_log_linear(
    step_begin: dt.date, step_end: dt.date,
    df_begin: float, df_end: float,
    sp_begin: float, sp_end: float,
    time_fraction: float,
) -> float:
    return protection_integral(diff(step_begin, step_end), df_begin, df_end, sp_begin, sp_end)


def _accrual_on_default_linear(
    step_begin: dt.date, step_end: dt.date,
    df_begin: float, df_end: float,
    sp_begin: float, sp_end: float,
    accrual_start: dt.date, day_count: DayCount,
    accrued_value: float, accrual_period: int,
    include_default_date: bool,
    time_fraction: float, accrual_fraction: float,
) -> float:
    if accrual_period == 0:
        return 0.0
    if accrual_start < step_begin:
        days = diff(accrual_start, step_begin, day_count) + int(
            diff(step_begin, step_end, day_count) * accrual_fraction
        )
    else:
        days = int(diff(accrual_start, step_end, day_count) * accrual_fraction)
    if include_default_date:
        days += 1
    avg_df = (1.0 - time_fraction) * df_begin + time_fraction * df_end
    return avg_df * (sp_begin - sp_end) * days / accrual_period * accrued_value


def _accrual_on_default_log_linear(
    step_begin: dt.date, step_end: dt.date,
    df_begin: float, df_end: float,
    sp_begin: float, sp_end: float,
    accrual_start: dt.date, day_count: DayCount,
    accrued_value: float, accrual_period: int,
    include_default_date: bool,
    time_fraction: float, accrual_fraction: float,
) -> float:
    if accrual_period == 0:
        return 0.0
    days = diff(accrual_start, step_end, day_count)
    if accrual_start < step_begin:
        a0 = float(diff(accrual_start, step_begin))
        dt_days = float(diff(step_begin, step_end))
    else:
        a0 = 0.0
        dt_days = float(diff(accrual_start, step_end))
    coupon = 0.0 if days == 0 or a0 + dt_days == 0 else accrued_value * days / accrual_period / (a0 + dt_days)
    # discrete daily accrual in a continuous integral
    a0 += 1.0 if include_default_date else 0.5
    return coupon * accrual_on_default_integral(dt_days, a0, df_begin, df_end, sp_begin, sp_end)


ProtectionFn = Callable[[dt.date, dt.date, float, float, float, float, float], float]
AccrualOnDefaultFn = Callable[..., float]


def _jump_date(curve: object | None) -> dt.date | None:
    return getattr(curve, "jump_date", None) if curve is not None else None


def find_default_date(
    survival_curve: SurvivalSource | None,
    counterparty_curve: SurvivalSource | None,
) -> tuple[dt.date | None, bool]:
    """Earliest jump date of the two curves, and whether it is the counterparty's."""
    credit_jump = _jump_date(survival_curve)
    cpty_jump = _jump_date(counterparty_curve)
    if cpty_jump is not None and (credit_jump is None or cpty_jump < credit_jump):
        return cpty_jump, True
    return credit_jump, False


def transform_survival_curves(
    as_of: dt.date,
    end: dt.date,
    survival_curve: SurvivalSource | None,
    counterparty_curve: SurvivalSource,
    correlation: float,
    step_size: int = 0,
    step_unit: TimeUnit = TimeUnit.NONE,
) -> tuple[SurvivalCurve, SurvivalCurve]:
    """
    Credit-first and counterparty-first survival curves under a Gaussian copula.

    On each grid step the probability that the credit defaults first is the
    marginal default probability of the step times the probability that the
    counterparty has survived, conditional on the credit defaulting at the
    step midpoint (and symmetrically for the counterparty). The returned
    curves hold one minus the cumulative first-to-default probabilities.
    """
    if not -1.0 <= correlation <= 1.0:
        raise InvalidArgumentError(f"correlation must be in [-1, 1], got {correlation}")
    credit = SurvivalCurve(name="credit", as_of=as_of)
    prepay = SurvivalCurve(name="prepay", as_of=as_of)
    if end <= as_of:
        return credit, prepay

    if step_size > 0 and step_unit is not TimeUnit.NONE:
        dates = TimeGridBuilder(step_size, step_unit, as_of).grid(as_of, end)
    else:
        dates = TimeGridBuilder(1, TimeUnit.MONTHS, as_of).grid(as_of, end)

    def default_prob(curve: SurvivalSource | None, date: dt.date) -> float:
        return 0.0 if curve is None else 1.0 - curve.interpolate(date)

    credit_first = 0.0
    cpty_first = 0.0
    prev = as_of
    fd_prev = default_prob(survival_curve, prev)
    fc_prev = default_prob(counterparty_curve, prev)
    for date in dates:
        fd = default_prob(survival_curve, date)
        fc = default_prob(counterparty_curve, date)
        fd_mid = 0.5 * (fd_prev + fd)
        fc_mid = 0.5 * (fc_prev + fc)
        credit_first += (fd - fd_prev) * (1.0 - _conditional_default(fc_mid, fd_mid, correlation))
        cpty_first += (fc - fc_prev) * (1.0 - _conditional_default(fd_mid, fc_mid, correlation))
        credit.add(date, max(1.0 - credit_first, 0.0))
        prepay.add(date, max(1.0 - cpty_first, 0.0))
        prev, fd_prev, fc_prev = date, fd, fc
    logger.debug("Transformed survival curves on %d grid points (rho=%.4f)", len(dates), correlation)
    return credit, prepay


def _conditional_default(p_other: float, p_self: float, rho: float) -> float:
    """P(other defaulted by t | self defaults at t) under a one-factor Gaussian copula."""
    if p_other <= 0.0:
        return 0.0
    if p_other >= 1.0:
        return 1.0
    eps = 1e-15
    x_other = norm.ppf(min(max(p_other, eps), 1.0 - eps))
    x_self = norm.ppf(min(max(p_self, eps), 1.0 - eps))
    if abs(rho) >= 1.0:
        return 1.0 if x_other > rho * x_self else 0.0
    return float(norm.cdf((x_other - rho * x_self) / math.sqrt(1.0 - rho * rho)))


class DefaultRiskCalculator:
    """
    Survival-weighted discounting over a credit-risk window.

    Built once from the credit survival curve (and optionally a counterparty
    or prepayment curve with its correlation); immutable afterwards. Survival
    probabilities are normalised so that survival at `risk_begin_date` is 1.

    `accrual_paid_on_default` only records the contract flag; accrual on
    default is driven by each coupon's `accrued_fraction_at_default`.
    """

    def __init__(
        self,
        as_of: dt.date,
        risk_begin_date: dt.date,
        risk_end_date: dt.date,
        survival_curve: SurvivalSource | None,
        counterparty_curve: SurvivalSource | None = None,
        correlation: float = 0.0,
        accrual_on_default: bool = False,
        include_default_date_in_accrual: bool = True,
        log_linear_approximation: bool = False,
        step_size: int = 0,
        step_unit: TimeUnit = TimeUnit.NONE,
    ) -> None:
        if step_size < 0:
            raise InvalidArgumentError("step_size must be >= 0")
        self.as_of = as_of
        self.credit_risk_begin_date = risk_begin_date
        self.partial_accrual_begin_date = risk_begin_date
        self.risk_end_date = risk_end_date
        self.default_date, self.is_prepaid = find_default_date(survival_curve, counterparty_curve)

        self.credit_curve: SurvivalSource | None
        self.prepay_curve: SurvivalSource | None
        if counterparty_curve is None:
            self.credit_curve = survival_curve
            self.prepay_curve = None
            sp = survival_curve.interpolate(risk_begin_date) if survival_curve is not None else 1.0
        else:
            self.credit_curve, self.prepay_curve = transform_survival_curves(
                as_of, risk_end_date, survival_curve, counterparty_curve,
                correlation, step_size, step_unit,
            )
            sp = combined_survival(
                self.credit_curve.interpolate(risk_begin_date),
                self.prepay_curve.interpolate(risk_begin_date),
                1.0,
            )
        self.initial_survival = 1.0 if sp <= _MIN_SURVIVAL else sp

        self.accrual_paid_on_default = accrual_on_default
        self.include_default_date_in_accrual = include_default_date_in_accrual
        self.use_log_linear_approximation = log_linear_approximation
        self.time_grid_builder = (
            TimeGridBuilder(step_size, step_unit, risk_begin_date) if step_size > 0 else None
        )
        self.end_date_protection_days = get_settings().end_date_protection_days
        self._protection_fn: ProtectionFn = (
            _protection_log_linear if log_linear_approximation else _protection_linear
        )
        self._accrual_on_default_fn: AccrualOnDefaultFn = (
            _accrual_on_default_log_linear if log_linear_approximation else _accrual_on_default_linear
        )

    def _protected(self, date: dt.date, include: bool) -> dt.date:
        return date + dt.timedelta(days=self.end_date_protection_days) if include else date

    def _grid(self, begin: dt.date, end: dt.date) -> list[dt.date]:
        if self.time_grid_builder is None:
            return []
        return self.time_grid_builder.grid(begin, end)

    # Survival

    def credit_survival(self, date: dt.date) -> float:
        """Probability of no credit default by `date` (prepayment ignored)."""
        if self.credit_curve is None:
            return 1.0
        if date < self.credit_risk_begin_date:
            return 1.0
        return self.credit_curve.interpolate(date) / self.initial_survival

    def survival_probability(self, date: dt.date) -> float:
        """Probability of neither default nor prepayment by `date`."""
        if date <= self.credit_risk_begin_date:
            return 1.0
        credit_sp = self.credit_curve.interpolate(date) if self.credit_curve is not None else 1.0
        if self.prepay_curve is None:
            return credit_sp / self.initial_survival
        return combined_survival(credit_sp, self.prepay_curve.interpolate(date), self.initial_survival)

    # Window helpers

    def accrual_risk_begin_date(self, begin: dt.date) -> dt.date:
        return begin if self.credit_risk_begin_date <= begin else self.credit_risk_begin_date

    def accrual_risk_end_date(self, payment: Payment, accrual_end: dt.date) -> dt.date:
        date = payment.credit_risk_end_date
        return date if date < accrual_end else accrual_end

    def accrual_ratio(self, ip: InterestPayment) -> float:
        """Scale for a period straddling the partial-accrual begin date."""
        settle = self.partial_accrual_begin_date
        if ip.accrual_start >= settle or ip.accrual_end <= settle:
            return 1.0
        accrued, remaining = ip.accrued(settle)
        return 0.0 if remaining <= 0.0 else 1.0 + accrued / remaining

    def _overall_survival(self, ip: InterestPayment) -> float:
        end = self.accrual_risk_end_date(ip, ip.accrual_end)
        return self.survival_probability(self._protected(end, ip.include_end_date_protection))

    # Discounting

    def risky_discount(self, ip: InterestPayment, discount_fn: DiscountFunction) -> float:
        """Survival-weighted discount factor of an interest payment, with accrual on default."""
        df = discount_fn(ip.pay_date)
        if abs(ip.accrued_fraction_at_default) < 1e-14:
            end = ip.credit_risk_end_date
            return self.survival_probability(self._protected(end, ip.include_end_date_protection)) * df
        return self._overall_survival(ip) * df + self.accrual_on_default(ip, discount_fn)

    def accrual_on_default(self, ip: InterestPayment, discount_fn: DiscountFunction) -> float:
        """Expected accrued coupon paid at default, per unit of the coupon amount."""
        return self.accrual_on_default_between(ip, ip.accrual_start, ip.accrual_end, discount_fn)

    def accrual_on_default_between(
        self,
        ip: InterestPayment,
        begin: dt.date,
        end: dt.date,
        discount_fn: DiscountFunction,
    ) -> float:
        """
        Accrual on default for defaults inside [begin, end] of the accrual window.

        The accrual ramp always starts at the period's accrual risk begin date,
        so splitting the window on grid points sums to the whole-window value.
        """
        ratio = self.accrual_ratio(ip)
        if ratio <= 0.0:
            return 0.0

        accrual_start = self.accrual_risk_begin_date(ip.accrual_start)
        window_end = self.accrual_risk_end_date(ip, ip.accrual_end)
        step_begin = max(begin, accrual_start)
        end = min(end, window_end)
        if end < step_begin:
            return 0.0
        include_last = ip.include_end_date_protection and end == window_end

        day_count = ip.day_count
        accrual_days = diff(ip.accrual_start, ip.accrual_end, day_count)
        fraction_at_default = ip.accrued_fraction_at_default
        fn = self._accrual_on_default_fn
        include_default_date = self.include_default_date_in_accrual

        begin_df = discount_fn(step_begin)
        begin_sp = self.survival_probability(step_begin)
        grid = self._grid(step_begin, end)
        if not grid:
            end_df = discount_fn(end)
            end_sp = self.survival_probability(self._protected(end, include_last))
            return ratio * fn(
                step_begin, end, begin_df, end_df, begin_sp, end_sp,
                accrual_start, day_count, 1.0, accrual_days, include_default_date,
                fraction_at_default, fraction_at_default,
            )

        pv = 0.0
        for date in grid:
            if date <= step_begin:
                continue
            step_end = protection_date = date
            if step_end >= end:
                step_end = end
                protection_date = self._protected(end, include_last)
                include_last = False
            sp = self.survival_probability(protection_date)
            df = discount_fn(step_end)
            pv += fn(
                step_begin, step_end, begin_df, df, begin_sp, sp,
                accrual_start, day_count, 1.0, accrual_days, include_default_date,
                fraction_at_default, fraction_at_default,
            )
            begin_sp, begin_df, step_begin = sp, df, step_end
        return pv * ratio

    # Protection

    def protection(
        self,
        begin_date: dt.date,
        end_date: dt.date,
        include_end_date_protection: bool,
        discount_fn: DiscountFunction,
    ) -> float:
        """Present value of a unit paid on a credit default inside [begin_date, end_date)."""
        if end_date < begin_date:
            raise InvalidArgumentError("end_date must not be before begin_date")
        time_fraction = 0.5
        fn = self._protection_fn
        begin_df = discount_fn(begin_date)
        begin_sp = self.credit_survival(begin_date)

        grid = self._grid(begin_date, end_date)
        if not grid:
            end_df = discount_fn(end_date)
            end_sp = self.credit_survival(self._protected(end_date, include_end_date_protection))
            return fn(begin_date, end_date, begin_df, end_df, begin_sp, end_sp, time_fraction)

        pv = 0.0
        include_last = include_end_date_protection
        begin = begin_date
        for date in grid:
            if date <= begin:
                continue
            end = protection_date = date
            if end >= end_date:
                end = end_date
                protection_date = self._protected(end, include_last)
                include_last = False
            sp = self.credit_survival(protection_date)
            df = discount_fn(end)
            pv += fn(begin, end, begin_df, df, begin_sp, sp, time_fraction)
            begin_sp, begin_df, begin = sp, df, end
        return pv

    def protection_for(self, payment: InterestPayment | ContingentPayment, discount_fn: DiscountFunction) -> float:
        """Protection over the credit-risk window of an interest or contingent payment."""
        if isinstance(payment, InterestPayment):
            begin, end = payment.accrual_start, payment.accrual_end
        else:
            begin, end = payment.begin_date, payment.end_date
        return self.protection(
            self.accrual_risk_begin_date(begin),
            self.accrual_risk_end_date(payment, end),
            payment.include_end_date_protection,
            discount_fn,
        )
