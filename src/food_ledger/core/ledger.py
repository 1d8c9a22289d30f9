'''
This file handles the pure ledger arithmetic: no database, no HTTP.

The ledger is an ordered log of immutable, signed payment entries. A balance
is always derived from it and never stored.
'''
from collections import defaultdict
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Protocol

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class LedgerEntry(Protocol):
    """Anything that looks like a payment row."""
    student_id: int
    payment_date: date
    amount: Decimal


def to_money(value) -> Decimal:
    """
    Converts a raw amount into a two-digit Decimal.
    Raises ValueError for values that are not finite numbers or need more than two fraction digits.
    """
    if isinstance(value, float):
        # str() keeps the short repr, Decimal(float) would expose the binary expansion
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"'{value}' is not a valid amount.")
    if not amount.is_finite():
        raise ValueError("Amount must be a finite number.")
    if amount != amount.quantize(CENT):
        raise ValueError("Amount cannot have more than two fraction digits.")
    return amount.quantize(CENT)


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Exact decimal sum; an empty input gives 0.00."""
    total = ZERO
    for amount in amounts:
        total += amount
    return total.quantize(CENT)


def balance_as_of(entries: Iterable[LedgerEntry], as_of: date) -> Decimal:
    """Sum of the entries dated on or before `as_of`."""
    return sum_amounts(entry.amount for entry in entries if entry.payment_date <= as_of)


def balances_by_student(entries: Iterable[LedgerEntry], as_of: date) -> dict[int, Decimal]:
    """
    Groups entries per student and returns each student's balance as of the given date.
    Students without entries are absent; callers default them to 0.00.
    """
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        if entry.payment_date <= as_of:
            totals[entry.student_id] += entry.amount
    return {student_id: total.quantize(CENT) for student_id, total in totals.items()}
