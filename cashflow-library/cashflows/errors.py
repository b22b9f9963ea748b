"""Exception types raised by the cashflow library."""

from __future__ import annotations

import datetime as dt


class CashflowError(Exception):
    """Base class for all cashflow library errors."""


class MissingFixingError(CashflowError):
    """A required historical rate or price reset is not available."""

    def __init__(self, reset_date: dt.date, index: str | None = None) -> None:
        self.reset_date = reset_date
        self.index = index
        what = f"{index} " if index else ""
        super().__init__(f"Missing {what}fixing for reset date {reset_date.isoformat()}")


class UnsupportedConfigurationError(CashflowError, ValueError):
    """The requested combination of settings is not supported."""


class InvalidArgumentError(CashflowError, ValueError):
    """An input is outside its valid range."""


class EffectiveRateError(CashflowError):
    """Wraps a failure raised while computing a floating effective rate."""

    def __init__(self, pay_date: dt.date, cause: Exception) -> None:
        self.pay_date = pay_date
        super().__init__(
            f"Error computing effective rate for the date {pay_date.isoformat()}: {cause}"
        )
