"""Rate fixing data: reset states, fixing schedules, and historical resets."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum


class RateResetState(Enum):
    NONE = "None"
    OBSERVATION_FOUND = "ObservationFound"
    IS_PROJECTED = "IsProjected"
    MISSING = "Missing"
    RESET_FOUND = "ResetFound"


class CompoundingConvention(Enum):
    NONE = "None"
    SIMPLE = "Simple"
    ISDA = "ISDA"
    FLAT_ISDA = "FlatISDA"


class SpreadType(Enum):
    ADDITIVE = "Additive"
    MULTIPLICATIVE = "Multiplicative"


@dataclass(frozen=True)
class Fixing:
    """A resolved forward value and how it was obtained."""

    forward: float
    state: RateResetState = RateResetState.IS_PROJECTED

    @property
    def is_projected(self) -> bool:
        return self.state is RateResetState.IS_PROJECTED


@dataclass
class FixingSchedule:
    """
    The observation behind one accrual sub-period.

    `reset_date` is mutable: some rate projectors allow the last reset of a
    coupon to be overridden after the schedule is built.
    """

    reset_date: dt.date
    start_date: dt.date
    end_date: dt.date
    pay_date: dt.date


@dataclass(frozen=True)
class ResetInfo:
    """One reset component; `value` is None unless the fixing is known."""

    reset_date: dt.date
    value: float | None
    state: RateResetState
    accrual_start: dt.date | None = None
    accrual_end: dt.date | None = None


@dataclass
class RateResets:
    """Historical index resets keyed by reset date."""

    resets: dict[dt.date, float] = field(default_factory=dict)

    def get(self, reset_date: dt.date) -> float | None:
        return self.resets.get(reset_date)

    def add(self, reset_date: dt.date, value: float) -> None:
        self.resets[reset_date] = value


def find_reset(
    as_of: dt.date,
    reset_date: dt.date,
    resets: RateResets,
    use_as_of_resets: bool,
) -> tuple[float | None, RateResetState]:
    """
    Classify a reset relative to `as_of` and look it up when it is historical.

    - after as_of: projected
    - on as_of: projected, unless `use_as_of_resets` (then found or missing)
    - before as_of: found or missing
    """
    if reset_date > as_of or (reset_date == as_of and not use_as_of_resets):
        return None, RateResetState.IS_PROJECTED
    value = resets.get(reset_date)
    if value is None:
        return None, RateResetState.MISSING
    return value, RateResetState.OBSERVATION_FOUND
