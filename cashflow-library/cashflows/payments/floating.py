"""Floating-rate interest payment."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, ClassVar

from cashflows.dates import Frequency
from cashflows.errors import (
    EffectiveRateError,
    MissingFixingError,
    UnsupportedConfigurationError,
)
from cashflows.fixings import (
    CompoundingConvention,
    RateResetState,
    ResetInfo,
    SpreadType,
)
from cashflows.interfaces import DiscountFunction, ForwardAdjustment, RateProjector
from cashflows.payments.base import DEFAULT_DATE_FORMAT, PaymentKind
from cashflows.payments.compounding import (
    CompoundingPeriod,
    FloatingRateEngine,
    build_compounding_periods,
)
from cashflows.payments.interest import InterestPayment
from cashflows.payments.nodes import FloatingCouponCashflowNode
from cashflows.settings import get_settings


@dataclass(kw_only=True, eq=False)
class FloatingInterestPayment(InterestPayment):
    """
    Coupon on a floating index.

    Compounding periods are generated once, at construction, from the accrual
    period, `compounding_frequency` and `compounding_convention`. `spread` is
    added to (or multiplies) the index rate according to `spread_type`.
    `use_discount_rate_for_compounding` is derived from the settings when not
    given explicitly.
    """

    kind: ClassVar[PaymentKind] = PaymentKind.FLOATING_INTEREST

    rate_projector: RateProjector
    forward_adjustment: ForwardAdjustment | None = None
    spread: float = 0.0
    spread_type: SpreadType = SpreadType.ADDITIVE
    index_multiplier: float | None = None
    cap: float | None = None
    floor: float | None = None
    compounding_convention: CompoundingConvention = CompoundingConvention.NONE
    effective_rate_override: float | None = None
    use_discount_rate_for_compounding: bool | None = None
    compounding_periods: list[CompoundingPeriod] = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.compounding_periods = build_compounding_periods(
            self.rate_projector,
            self.previous_pay_date,
            self.accrual_start,
            self.accrual_end,
            self.pay_date,
            self.compounding_frequency,
            self.compounding_convention,
            self.cycle_rule,
        )
        if self.use_discount_rate_for_compounding is None:
            self.use_discount_rate_for_compounding = (
                len(self.compounding_periods) > 1
                and get_settings().implicit_discount_rate_compounding
                and not getattr(self.rate_projector, "reference_is_discount", True)
            )

    @property
    def multiplier(self) -> float:
        """Index multiplier, 1 when unset."""
        return 1.0 if self.index_multiplier is None else self.index_multiplier

    @property
    def approximate_daily_compounding(self) -> bool:
        return (
            self.compounding_convention is not CompoundingConvention.NONE
            and self.compounding_frequency is Frequency.DAILY
            and bool(getattr(self.rate_projector, "approximate", False))
        )

    def engine(self) -> FloatingRateEngine:
        return FloatingRateEngine(
            pay_date=self.pay_date,
            periods=tuple(self.compounding_periods),
            projector=self.rate_projector,
            convention=self.compounding_convention,
            index_multiplier=self.multiplier,
            use_discount_rate=bool(self.use_discount_rate_for_compounding),
            approximate_daily=self.approximate_daily_compounding,
        )

    @property
    def effective_rate(self) -> float:
        if self.effective_rate_override is not None:
            return self.effective_rate_override
        try:
            components = self.engine().process(
                self.spread,
                self.spread_type,
                self.forward_adjustment,
                self.cap,
                self.floor,
            )
        except MissingFixingError:
            raise
        except Exception as exc:
            raise EffectiveRateError(self.pay_date, exc) from exc
        return components.total

    @property
    def index_fixing(self) -> float:
        """Compounded index rate without spread, convexity or collar."""
        if self.effective_rate_override is not None:
            return self.effective_rate_override - self.spread
        return self.engine().process(0.0, SpreadType.ADDITIVE).forward

    @property
    def convexity_adjustment(self) -> float:
        if self.effective_rate_override is not None or self.forward_adjustment is None:
            return 0.0
        return self.engine().process(self.spread, self.spread_type, self.forward_adjustment).convexity

    @property
    def reset_date(self) -> dt.date:
        return self.compounding_periods[-1].fixing_schedule.reset_date

    @reset_date.setter
    def reset_date(self, value: dt.date) -> None:
        if not getattr(self.rate_projector, "supports_reset_date_override", False):
            raise UnsupportedConfigurationError(
                "Overriding the reset date is not supported for this type of rate projection"
            )
        self.compounding_periods[-1].fixing_schedule.reset_date = value

    def reset_infos(self) -> list[ResetInfo]:
        if self.effective_rate_override is not None:
            return [
                ResetInfo(
                    reset_date=self.reset_date,
                    value=self.effective_rate_override,
                    state=RateResetState.RESET_FOUND,
                    accrual_start=self.accrual_start,
                    accrual_end=self.accrual_end,
                )
            ]
        infos: list[ResetInfo] = []
        for period in self.compounding_periods:
            infos.extend(self.rate_projector.reset_info(period.fixing_schedule))
        return infos

    @property
    def rate_reset_state(self) -> RateResetState:
        if self.effective_rate_override is not None:
            return RateResetState.RESET_FOUND
        infos = self.reset_infos()
        if not infos:
            return RateResetState.MISSING
        states = {info.state for info in infos}
        if RateResetState.MISSING in states:
            return RateResetState.MISSING
        if RateResetState.IS_PROJECTED in states:
            return RateResetState.IS_PROJECTED
        return RateResetState.OBSERVATION_FOUND

    @property
    def is_projected(self) -> bool:
        return self.rate_reset_state is RateResetState.IS_PROJECTED

    def to_cashflow_node(
        self,
        notional: float,
        discount_fn: DiscountFunction,
        survival_fn: DiscountFunction | None = None,
    ) -> FloatingCouponCashflowNode:
        return FloatingCouponCashflowNode(
            pay_date=self.pay_date,
            notional=notional,
            discount_fn=discount_fn,
            survival_fn=survival_fn,
            engine=self.engine(),
            spread=self.spread,
            spread_type=self.spread_type,
            accrual_factor=self.accrual_factor * self.notional,
            cap=self.cap,
            floor=self.floor,
        )

    def data_columns(self) -> list[str]:
        columns = super().data_columns() + ["Reset Date", "Spread", "Index Rate"]
        if self.multiplier != 1.0:
            columns.append("Index Multiplier")
        return columns + ["Is Projected", "Forward Rate Adj", "Amount"]

    def data_values(self, date_format: str = DEFAULT_DATE_FORMAT) -> dict[str, Any]:
        values = super().data_values(date_format)
        values["Reset Date"] = self.reset_date.strftime(date_format)
        values["Spread"] = self.spread
        values["Index Rate"] = self.index_fixing
        if self.multiplier != 1.0:
            values["Index Multiplier"] = self.multiplier
        values["Is Projected"] = self.is_projected
        values["Forward Rate Adj"] = self.convexity_adjustment
        values["Amount"] = self.amount
        return values
