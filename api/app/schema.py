"""GraphQL schema: CDS pricing, payment stream valuation and risk queries."""

from typing import Optional

import strawberry

from app.services import payment_stream_table, price_cds, value_payment_stream
from app.types import (
    CDSInput,
    FixedCouponStreamInput,
    MarketInput,
    PaymentStreamTable,
    PricingResult,
)


@strawberry.type
class Query:
    @strawberry.field
    def hello(self, name: str = "World") -> str:
        return f"Hello {name} from Cashflow Valuation API!"

    @strawberry.field
    def version(self) -> str:
        return "0.1.0"

    @strawberry.field
    def price_cds(
        self,
        cds: CDSInput,
        market: MarketInput,
        calculate_cs01: bool = False,
        cs01_hazard_curve_name: Optional[str] = None,
        cs01_bump_bp: float = 1.0,
        calculate_pv01: bool = False,
        pv01_curve_name: Optional[str] = None,
        pv01_bump_bp: float = 1.0,
    ) -> PricingResult:
        """Price a single-name CDS. Optionally compute CS01 (hazard bump) and PV01 (curve bump)."""
        return price_cds(
            cds=cds,
            market=market,
            calculate_cs01=calculate_cs01,
            cs01_hazard_curve_name=cs01_hazard_curve_name,
            cs01_bump_bp=cs01_bump_bp,
            calculate_pv01=calculate_pv01,
            pv01_curve_name=pv01_curve_name,
            pv01_bump_bp=pv01_bump_bp,
        )

    @strawberry.field
    def value_payment_stream(
        self,
        stream: FixedCouponStreamInput,
        market: MarketInput,
        calculate_pv01: bool = False,
        pv01_curve_name: Optional[str] = None,
        pv01_bump_bp: float = 1.0,
        calculate_cs01: bool = False,
        cs01_hazard_curve_name: Optional[str] = None,
        cs01_bump_bp: float = 1.0,
    ) -> PricingResult:
        """Value a fixed-coupon payment stream. Optionally compute PV01 and CS01."""
        return value_payment_stream(
            stream=stream,
            market=market,
            calculate_pv01=calculate_pv01,
            pv01_curve_name=pv01_curve_name,
            pv01_bump_bp=pv01_bump_bp,
            calculate_cs01=calculate_cs01,
            cs01_hazard_curve_name=cs01_hazard_curve_name,
            cs01_bump_bp=cs01_bump_bp,
        )

    @strawberry.field
    def payment_stream_table(
        self,
        stream: FixedCouponStreamInput,
        market: MarketInput,
    ) -> PaymentStreamTable:
        """Payment rows of a fixed-coupon stream with risky discount factors."""
        return payment_stream_table(stream=stream, market=market)


schema = strawberry.Schema(query=Query)
