"""
Library-wide settings read from the environment.

Settings are read once, lazily, on first `get_settings()` call. Tests and
callers that need different behavior use `configure(...)`, which replaces the
active snapshot; `reset_settings()` drops it so the environment is re-read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CashflowSettings:
    """
    - implicit_discount_rate_compounding: compound multi-period floating coupons
      with the discount-curve rate when the index curve is a different curve.
    - no_cycle_rule_for_compounding: ignore the roll day when generating
      compounding sub-periods (all conventions except Simple).
    - end_date_protection_days: calendar days added to a protection or
      survival end date when "include end-date protection" is set.
    """

    implicit_discount_rate_compounding: bool = False
    no_cycle_rule_for_compounding: bool = True
    end_date_protection_days: int = 1

    @classmethod
    def from_env(cls) -> "CashflowSettings":
        days = int(os.environ.get("CASHFLOWS_END_DATE_PROTECTION_DAYS", "1"))
        if days < 0:
            raise ValueError("CASHFLOWS_END_DATE_PROTECTION_DAYS must be >= 0")
        return cls(
            implicit_discount_rate_compounding=_env_flag(
                "CASHFLOWS_IMPLICIT_DISCOUNT_RATE_COMPOUNDING", False
            ),
            no_cycle_rule_for_compounding=_env_flag(
                "CASHFLOWS_NO_CYCLE_RULE_FOR_COMPOUNDING", True
            ),
            end_date_protection_days=days,
        )


_settings: Optional[CashflowSettings] = None


def get_settings() -> CashflowSettings:
    """Return the active settings; read the environment on first use."""
    global _settings
    if _settings is None:
        _settings = CashflowSettings.from_env()
    return _settings


def configure(**overrides: object) -> CashflowSettings:
    """Replace selected fields of the active settings and return the result."""
    global _settings
    _settings = replace(get_settings(), **overrides)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
