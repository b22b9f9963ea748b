"""Integration tests for GraphQL CDS pricing and payment stream queries."""

import datetime as dt

from fastapi.testclient import TestClient

from app.main import app
from cashflows.curves import HazardRateCurve, ZeroRateCurve
from cashflows.market import Market
from cashflows.pricing import price
from cashflows.products.cds import CDS


client = TestClient(app)

MARKET = """
market: {
  curves: [{
    name: "USD_DISC"
    asOf: "2025-01-02"
    pillars: [0.5, 1.0, 2.0, 5.0, 10.0]
    zeroRatesCc: [0.045, 0.043, 0.040, 0.038, 0.037]
  }]
  hazardCurves: [{
    name: "CORP_HAZ"
    asOf: "2025-01-02"
    pillars: [0.5, 1.0, 2.0, 5.0, 10.0]
    hazardRates: [0.01, 0.01, 0.01, 0.01, 0.01]
  }]
  fxSpot: [{ pair: "USDEUR", spot: 0.92 }]
}
"""


def _library_market() -> Market:
    as_of = dt.date(2025, 1, 2)
    pillars = [0.5, 1.0, 2.0, 5.0, 10.0]
    return Market(
        curves={
            "USD_DISC": ZeroRateCurve(
                name="USD_DISC", as_of=as_of, pillars=pillars, zero_rates_cc=[0.045, 0.043, 0.040, 0.038, 0.037]
            ),
            "CORP_HAZ": HazardRateCurve(name="CORP_HAZ", as_of=as_of, pillars=pillars, hazard_rates=[0.01] * 5),
        }
    )


def _post(query: str) -> dict:
    response = client.post("/graphql", json={"query": query})
    assert response.status_code == 200
    return response.json()


def test_health() -> None:
    """Health endpoint answers ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_price_cds_returns_npv_and_cs01() -> None:
    """CDS pricing and CS01 work with discount + hazard curves and match the library."""
    data = _post(
        """
        query PriceCds {
          priceCds(
            cds: {
              discountCurve: "USD_DISC"
              survivalCurve: "CORP_HAZ"
              notional: 10000000
              premiumRate: 0.01
              effectiveDate: "2025-01-02"
              maturityDate: "2030-01-02"
              recovery: 0.4
            }
            %s
            calculateCs01: true
            calculatePv01: true
          ) {
            npv
            riskMeasures { cs01 pv01 }
          }
        }
        """
        % MARKET
    )
    assert "errors" not in data
    result = data["data"]["priceCds"]
    expected = price(
        CDS(
            discount_curve="USD_DISC",
            survival_curve="CORP_HAZ",
            notional=10_000_000,
            premium_rate=0.01,
            effective_date=dt.date(2025, 1, 2),
            maturity_date=dt.date(2030, 1, 2),
        ),
        _library_market(),
    )
    assert abs(result["npv"] - expected) < 1e-6
    # 100bp premium against ~60bp of expected loss: the buyer overpays
    assert result["npv"] < 0
    assert result["riskMeasures"]["cs01"] > 0
    assert result["riskMeasures"]["pv01"] is not None


def test_price_cds_missing_curve_returns_error() -> None:
    """Request with a survival curve not in the market returns a validation error."""
    data = _post(
        """
        query {
          priceCds(
            cds: {
              discountCurve: "USD_DISC"
              survivalCurve: "MISSING"
              notional: 1000000
              premiumRate: 0.01
              effectiveDate: "2025-01-02"
              maturityDate: "2027-01-02"
            }
            %s
          ) { npv }
        }
        """
        % MARKET
    )
    assert "errors" in data
    assert any("curve" in e["message"].lower() for e in data["errors"])


def test_price_cds_unknown_frequency_returns_error() -> None:
    """Frequencies are validated against the enum names."""
    data = _post(
        """
        query {
          priceCds(
            cds: {
              discountCurve: "USD_DISC"
              survivalCurve: "CORP_HAZ"
              notional: 1000000
              premiumRate: 0.01
              effectiveDate: "2025-01-02"
              maturityDate: "2027-01-02"
              frequency: "FORTNIGHTLY"
            }
            %s
          ) { npv }
        }
        """
        % MARKET
    )
    assert "errors" in data
    assert any("frequency" in e["message"].lower() for e in data["errors"])


def test_price_cds_inverted_dates_returns_error() -> None:
    """Maturity on or before the effective date is rejected."""
    data = _post(
        """
        query {
          priceCds(
            cds: {
              discountCurve: "USD_DISC"
              survivalCurve: "CORP_HAZ"
              notional: 1000000
              premiumRate: 0.01
              effectiveDate: "2027-01-02"
              maturityDate: "2025-01-02"
            }
            %s
          ) { npv }
        }
        """
        % MARKET
    )
    assert "errors" in data
    assert any("maturity_date" in e["message"] for e in data["errors"])


def test_value_payment_stream_with_risk() -> None:
    """A risky fixed-coupon note has negative PV01 and CS01, and FX conversion scales the PV."""
    stream = """
    stream: {
      discountCurve: "USD_DISC"
      survivalCurve: "CORP_HAZ"
      notional: 1000000
      coupon: 0.05
      effectiveDate: "2025-01-02"
      maturityDate: "2028-01-02"
      frequency: "SEMI_ANNUAL"
      dayCount: "THIRTY_360"
      %s
    }
    """
    template = """
    query {
      valuePaymentStream(
        %s
        %s
        calculatePv01: true
        calculateCs01: true
      ) {
        npv
        riskMeasures { pv01 cs01 }
      }
    }
    """
    domestic = _post(template % (stream % "", MARKET))
    assert "errors" not in domestic
    result = domestic["data"]["valuePaymentStream"]
    assert result["npv"] > 0
    assert result["riskMeasures"]["pv01"] < 0
    assert result["riskMeasures"]["cs01"] < 0

    converted = _post(template % (stream % 'fxPair: "USDEUR"', MARKET))
    assert "errors" not in converted
    assert abs(converted["data"]["valuePaymentStream"]["npv"] - 0.92 * result["npv"]) < 1e-6


def test_payment_stream_table_rows_sum_to_npv() -> None:
    """Without credit risk, the PV is the sum of amount times risky discount."""
    data = _post(
        """
        query {
          paymentStreamTable(
            stream: {
              discountCurve: "USD_DISC"
              notional: 1000000
              coupon: 0.05
              effectiveDate: "2025-01-02"
              maturityDate: "2027-01-02"
              frequency: "SEMI_ANNUAL"
            }
            %s
          ) {
            npv
            rows { payDate kind amount riskyDiscount accrualStart accrualEnd accrualOnDefault }
          }
        }
        """
        % MARKET
    )
    assert "errors" not in data
    table = data["data"]["paymentStreamTable"]
    rows = table["rows"]
    assert [r["kind"] for r in rows] == ["FixedInterest"] * 4 + ["PrincipalExchange"]
    assert rows[0]["payDate"] == "2025-07-02"
    assert rows[0]["accrualStart"] == "2025-01-02"
    assert rows[-1]["accrualStart"] is None
    assert all(r["accrualOnDefault"] is None for r in rows)
    total = sum(r["amount"] * r["riskyDiscount"] for r in rows)
    assert abs(total - table["npv"]) < 1e-6


def test_payment_stream_table_accrual_on_default() -> None:
    """Risky coupons with an accrued fraction at default report their accrual-on-default value."""
    data = _post(
        """
        query {
          paymentStreamTable(
            stream: {
              discountCurve: "USD_DISC"
              survivalCurve: "CORP_HAZ"
              notional: 1000000
              coupon: 0.05
              effectiveDate: "2025-01-02"
              maturityDate: "2026-01-02"
              accruedFractionAtDefault: 0.5
            }
            %s
          ) {
            rows { kind riskyDiscount accrualOnDefault }
          }
        }
        """
        % MARKET
    )
    assert "errors" not in data
    rows = data["data"]["paymentStreamTable"]["rows"]
    coupons = [r for r in rows if r["kind"] == "FixedInterest"]
    assert len(coupons) == 4
    assert all(r["accrualOnDefault"] > 0 for r in coupons)
    assert all(0 < r["riskyDiscount"] < 1 for r in rows)


def test_hello_and_version() -> None:
    """Legacy hello and version queries still work."""
    response = client.post(
        "/graphql",
        json={"query": "{ hello(name: \"API\") version }"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["data"]["hello"] == "Hello API from Cashflow Valuation API!"
    assert data["data"]["version"] == "0.1.0"
