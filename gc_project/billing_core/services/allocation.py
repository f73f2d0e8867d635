from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Tuple

from ..exceptions import InvalidAmount
from .amounts import ZERO


@dataclass(frozen=True)
class Allocation:
    invoice_id: int
    applied_amount: Decimal


def allocate(payment_amount: Decimal, invoices: Iterable) -> Tuple[List[Allocation], Decimal]:
    """
    Split a payment across outstanding invoices, oldest debt first.

    `invoices` is any iterable of objects exposing `pk`, `invoice_amount`,
    `amount_paid` and `created_at`. Nothing is mutated: the caller applies
    the returned allocations. Whatever is left after every invoice is
    covered comes back as the remainder (an unattached credit).
    """
    if payment_amount is None or payment_amount <= ZERO:
        raise InvalidAmount("Payment amount must be positive")

    ordered = sorted(invoices, key=lambda inv: (inv.created_at, inv.pk))

    allocations = []
    remaining = payment_amount
    for invoice in ordered:
        if remaining <= ZERO:
            break
        due = invoice.invoice_amount - invoice.amount_paid
        applied = min(remaining, due)
        # Fully paid (or over-recorded) invoices get nothing
        if applied <= ZERO:
            continue
        allocations.append(Allocation(invoice.pk, applied))
        remaining -= applied

    return allocations, remaining
