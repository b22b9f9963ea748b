"""
PaymentSchedule: payments keyed by pay date, plus schedule utilities.

Iteration is by ascending pay date; payments sharing a date keep their
insertion order. Grouping helpers return `(date, payments)` pairs in
ascending date order, ready for `cashflows.valuation.pv`.
"""

from __future__ import annotations

import copy
import dataclasses
import datetime as dt
import logging
from typing import Callable, Iterable, Iterator, TypeVar

from cashflows.dates import earlier
from cashflows.fixings import CompoundingConvention
from cashflows.payments import (
    ContingentPayment,
    DefaultSettlement,
    InterestPayment,
    Payment,
    RecoveryPayment,
)
from cashflows.payments.base import DEFAULT_DATE_FORMAT

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Payment)

GroupedPayments = list[tuple[dt.date, list[Payment]]]


class PaymentSchedule:
    """Ordered mapping from pay date to the payments made on that date."""

    def __init__(self, payments: Iterable[Payment] = ()) -> None:
        self._payments: dict[dt.date, list[Payment]] = {}
        self.add_payments(payments)

    def add_payment(self, payment: Payment) -> None:
        self._payments.setdefault(payment.pay_date, []).append(payment)

    def add_payments(self, payments: Iterable[Payment]) -> None:
        for payment in payments:
            self.add_payment(payment)

    def remove_payment(self, payment: Payment) -> bool:
        """Remove one payment (by identity); return whether it was found."""
        bucket = self._payments.get(payment.pay_date, [])
        for i, p in enumerate(bucket):
            if p is payment:
                del bucket[i]
                if not bucket:
                    del self._payments[payment.pay_date]
                return True
        return False

    def remove_payments(self, date: dt.date) -> list[Payment]:
        """Remove and return every payment on `date`."""
        return self._payments.pop(date, [])

    def get_payments_on_date(self, date: dt.date) -> list[Payment]:
        return list(self._payments.get(date, []))

    def get_payment_dates(self) -> list[dt.date]:
        return sorted(self._payments)

    def get_payments_by_type(
        self,
        payment_type: type[P],
        date: dt.date | None = None,
        predicate: Callable[[P], bool] | None = None,
    ) -> list[P]:
        """Payments of a concrete type, optionally on one date and/or matching a predicate."""
        source = self.get_payments_on_date(date) if date is not None else list(self)
        return [
            p
            for p in source
            if isinstance(p, payment_type) and (predicate is None or predicate(p))
        ]

    def items(self) -> Iterator[tuple[dt.date, list[Payment]]]:
        for date in self.get_payment_dates():
            yield date, list(self._payments[date])

    def __iter__(self) -> Iterator[Payment]:
        for _, payments in self.items():
            yield from payments

    def __len__(self) -> int:
        return sum(len(v) for v in self._payments.values())

    def copy(self) -> PaymentSchedule:
        """
        Schedule of shallow payment copies; scaling the copy leaves this one intact.

        Compounded principals are rebound to the copied payments.
        """
        copies = {id(p): copy.copy(p) for p in self}
        for p in copies.values():
            calculator = getattr(p, "principal_calculator", None)
            if isinstance(calculator, CompoundedPrincipal):
                p.principal_calculator = CompoundedPrincipal(
                    copies.get(id(calculator.payment), calculator.payment),
                    copies.get(id(calculator.previous), calculator.previous),
                )
        return PaymentSchedule(copies.values())

    def scale(self, factor: float) -> None:
        for payment in self:
            payment.scale(factor)

    def filter_payments(self, from_date: dt.date) -> PaymentSchedule:
        """
        Payments still outstanding after `from_date`.

        Pay dates before `from_date` are dropped; on later dates a payment is
        kept when its cutoff is after `from_date`, and default settlements are
        always kept.
        """
        result = PaymentSchedule()
        for date, payments in self.items():
            if date < from_date:
                continue
            result.add_payments(
                p
                for p in payments
                if isinstance(p, DefaultSettlement) or from_date < p.get_cutoff_date()
            )
        return result

    def to_table(self, date_format: str = DEFAULT_DATE_FORMAT) -> list[dict[str, object]]:
        """One row per payment, for reporting."""
        return [p.data_values(date_format) for p in self]


def _group(payments: Iterable[Payment], key: Callable[[Payment], dt.date]) -> GroupedPayments:
    groups: dict[dt.date, list[Payment]] = {}
    for p in payments:
        groups.setdefault(key(p), []).append(p)
    return sorted(groups.items(), key=lambda item: item[0])


def group_by_pay_date(payments: Iterable[Payment]) -> GroupedPayments:
    return _group(payments, lambda p: p.pay_date)


def group_by_cutoff(payments: Iterable[Payment]) -> GroupedPayments:
    return _group(payments, lambda p: p.get_cutoff_date())


def _accrual_end_key(p: Payment) -> dt.date:
    if isinstance(p, InterestPayment):
        return p.period_end_date if p.accrue_on_cycle else p.pay_date
    if isinstance(p, ContingentPayment):
        return p.end_date
    return p.pay_date


def group_by_accrual_end(payments: Iterable[Payment]) -> GroupedPayments:
    return _group(payments, _accrual_end_key)


def _cutoff_date_key(p: Payment) -> dt.date:
    if isinstance(p, InterestPayment):
        return earlier(p.accrual_end, p.pay_date)
    if isinstance(p, ContingentPayment):
        return p.end_date
    return p.pay_date


def group_by_cutoff_date(payments: Iterable[Payment]) -> GroupedPayments:
    """Group by accrual end (or pay date if earlier): credit risk to period end."""
    return _group(payments, _cutoff_date_key)


def set_protection_start(schedule: PaymentSchedule, protection_start: dt.date) -> GroupedPayments:
    """
    Grouped payments with the first live recovery period starting at `protection_start`.

    The schedule itself is not modified.
    """
    recoveries = sorted(
        (p for p in schedule.get_payments_by_type(RecoveryPayment) if p.end_date > protection_start),
        key=lambda p: p.begin_date,
    )
    grouped = list(schedule.items())
    if not recoveries or recoveries[0].begin_date == protection_start:
        return grouped
    first = recoveries[0]
    replacement = dataclasses.replace(first, begin_date=protection_start)
    return [
        (date, [replacement if p is first else p for p in payments])
        for date, payments in grouped
    ]


def enable_interest_compounding(
    payments: Iterable[InterestPayment],
    convention: CompoundingConvention,
) -> None:
    """
    Compound interest across periods that share a pay date.

    Within a pay date, ordered by accrual end, each period's principal becomes
    the previous principal plus its interest plus any notional change.
    """
    if convention in (CompoundingConvention.NONE, CompoundingConvention.SIMPLE):
        return
    by_pay_date: dict[dt.date, list[InterestPayment]] = {}
    for p in payments:
        by_pay_date.setdefault(p.pay_date, []).append(p)
    for group in by_pay_date.values():
        previous: InterestPayment | None = None
        for payment in sorted(group, key=lambda p: p.accrual_end):
            payment.principal_calculator = _compounding_calculator(payment, previous)
            previous = payment


@dataclasses.dataclass
class CompoundedPrincipal:
    """Principal of a compounded period: the previous principal plus its interest."""

    payment: InterestPayment
    previous: InterestPayment

    def __call__(self) -> float:
        previous = self.previous
        return self.payment.notional - previous.notional + previous.calculation_principal + previous.amount


def _compounding_calculator(
    payment: InterestPayment, previous: InterestPayment | None
) -> CompoundedPrincipal | None:
    if previous is None:
        return None
    return CompoundedPrincipal(payment, previous)


def get_recovery_payments(
    schedule: PaymentSchedule,
    credit_risk_to_payment_date: bool,
    recovery_fn: Callable[[dt.date], float] | None,
    is_funded: bool = False,
) -> list[RecoveryPayment]:
    """
    One recovery payment per interest period.

    The protection window is [previous pay date, pay date] when credit risk
    runs to the payment date, otherwise [accrual start, period end]. Periods
    whose recovery makes the payout zero are skipped.
    """
    recoveries: list[RecoveryPayment] = []
    if recovery_fn is None:
        return recoveries
    for ip in schedule.get_payments_by_type(InterestPayment):
        if credit_risk_to_payment_date:
            begin, end = ip.previous_pay_date, ip.pay_date
        else:
            begin, end = ip.accrual_start, ip.period_end_date
        recovery = recovery_fn(end)
        if (is_funded and abs(recovery) < 1e-14) or (not is_funded and abs(recovery - 1.0) < 1e-14):
            continue
        recoveries.append(
            RecoveryPayment(
                begin_date=begin,
                end_date=end,
                recovery_rate=recovery,
                currency=ip.currency,
                notional=ip.notional,
                is_funded=is_funded,
                include_end_date_protection=ip.include_end_date_protection,
            )
        )
    return recoveries


@dataclasses.dataclass(frozen=True)
class DefaultPaymentFlags:
    """How the coupon period containing a default is settled."""

    accrued_paid_on_default: bool = True
    include_default_date: bool = False
    support_accrual_rebate_after_default: bool = False
    funded: bool = False


def get_default_settlement(
    schedule: PaymentSchedule,
    recovery_rate: float,
    currency: str,
    default_date: dt.date | None,
    default_payment_date: dt.date | None,
    flags: DefaultPaymentFlags = DefaultPaymentFlags(),
) -> DefaultSettlement | None:
    """
    Replace the last interest period with its default-truncated version.

    The schedule is modified in place: the payments on the last pay date are
    removed, the interest payment of that date is re-added truncated at the
    default date (or in full, when a rebate applies), and the settlement is
    returned without being added.
    """
    if len(schedule) == 0 or default_date is None:
        return None
    last_pay_date = schedule.get_payment_dates()[-1]
    if default_date > last_pay_date:
        return None

    last_payments = schedule.remove_payments(last_pay_date)
    interest = [p for p in last_payments if isinstance(p, InterestPayment)]
    if len(interest) != 1:
        raise ValueError(
            f"Expected one interest payment on {last_pay_date}, found {len(interest)}"
        )
    settlement = None
    for payment in _generate_default_payments(
        interest[0], recovery_rate, currency, default_date, default_payment_date, flags
    ):
        if isinstance(payment, DefaultSettlement):
            settlement = payment
        else:
            schedule.add_payment(payment)
    return settlement


def _generate_default_payments(
    ip: InterestPayment,
    recovery_rate: float,
    currency: str,
    default_date: dt.date,
    default_payment_date: dt.date | None,
    flags: DefaultPaymentFlags,
) -> Iterator[Payment]:
    default_accrual = 0.0
    if (
        flags.support_accrual_rebate_after_default
        and default_payment_date is not None
        and default_date <= ip.pay_date <= default_payment_date
    ):
        # full coupon is paid; the unearned part is rebated at settlement
        yield ip
        full_amount = ip.amount
        rebate = 0.0
        if not flags.accrued_paid_on_default:
            rebate = -full_amount
        else:
            rebate_begin = default_date + dt.timedelta(days=1) if flags.include_default_date else default_date
            full = (ip.accrual_end - ip.accrual_start).days
            remaining = (ip.accrual_end - rebate_begin).days
            if remaining > 0 and full > 0:
                rebate = -remaining / full * full_amount
        default_accrual = rebate
    else:
        ip.include_end_date_in_accrual = flags.include_default_date
        ip.accrual_end = default_date
        ip.pay_date = default_date
        if not flags.accrued_paid_on_default:
            ip.accrual_factor_override = 0.0
        if default_payment_date is None:
            yield ip
        else:
            default_accrual = ip.amount

    accrual = default_accrual / ip.notional if ip.notional != 0.0 else 0.0
    logger.debug("Default on %s: settlement accrual %.6f", default_date, accrual)
    yield DefaultSettlement(
        default_date=default_date,
        default_settle_date=default_payment_date,
        currency=currency,
        notional=ip.notional,
        recovery_rate=recovery_rate,
        accrual=accrual,
        is_funded=flags.funded,
    )
