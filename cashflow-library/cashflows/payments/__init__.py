"""Payment variants: interest coupons, one-time amounts, contingent and commodity legs."""

from typing import Union

from cashflows.payments.base import Payment, PaymentKind
from cashflows.payments.commodity import CommodityFixedPayment, CommodityFloatingPayment
from cashflows.payments.compounding import (
    CompoundingPeriod,
    FloatingRateEngine,
    RateComponents,
    build_compounding_periods,
    compound_power,
)
from cashflows.payments.contingent import (
    ContingentPayment,
    CreditContingentPayment,
    RecoveryPayment,
)
from cashflows.payments.floating import FloatingInterestPayment
from cashflows.payments.interest import FixedInterestPayment, InterestPayment
from cashflows.payments.nodes import (
    CashflowNode,
    FixedCouponCashflowNode,
    FloatingCouponCashflowNode,
    OneTimeCashflowNode,
)
from cashflows.payments.one_time import (
    BasicPayment,
    BulletBonusPayment,
    DefaultSettlement,
    DividendPayment,
    FloatingPrincipalExchange,
    OneTimePayment,
    PrincipalExchange,
    UpfrontFee,
)
from cashflows.payments.price_return import PriceReturnPayment

PaymentVariant = Union[
    FixedInterestPayment,
    FloatingInterestPayment,
    BasicPayment,
    PrincipalExchange,
    FloatingPrincipalExchange,
    UpfrontFee,
    BulletBonusPayment,
    DividendPayment,
    DefaultSettlement,
    ContingentPayment,
    CreditContingentPayment,
    RecoveryPayment,
    PriceReturnPayment,
    CommodityFloatingPayment,
    CommodityFixedPayment,
]

__all__ = [
    "Payment",
    "PaymentKind",
    "PaymentVariant",
    "InterestPayment",
    "FixedInterestPayment",
    "FloatingInterestPayment",
    "CompoundingPeriod",
    "FloatingRateEngine",
    "RateComponents",
    "build_compounding_periods",
    "compound_power",
    "OneTimePayment",
    "BasicPayment",
    "PrincipalExchange",
    "FloatingPrincipalExchange",
    "UpfrontFee",
    "BulletBonusPayment",
    "DividendPayment",
    "DefaultSettlement",
    "ContingentPayment",
    "CreditContingentPayment",
    "RecoveryPayment",
    "PriceReturnPayment",
    "CommodityFloatingPayment",
    "CommodityFixedPayment",
    "CashflowNode",
    "OneTimeCashflowNode",
    "FixedCouponCashflowNode",
    "FloatingCouponCashflowNode",
]
