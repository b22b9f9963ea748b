"""Products: CDS and generic payment streams."""

from cashflows.products.cds import CDS
from cashflows.products.payment_stream import PaymentStream

__all__ = ["CDS", "PaymentStream"]
