import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial
from typing import List, Optional

from django.db import DatabaseError, transaction

from ..exceptions import (AlreadySettled, InvalidPaymentMode, NotFound,
                          PaymentMismatch, SettlementError,
                          StoreTransactionFailure)
from ..models import Customer, Invoice, Payment, Receipt
from ..models.payment import PAYMENT_MODE_CHOICES
from .allocation import allocate
from .amounts import ZERO, to_amount
from .audit_helper import log_action
from .notifications import build_sms_sender, send_sms, settlement_message
from .receipt_numbers import generate_receipt_number

logger = logging.getLogger(__name__)

PAYMENT_MODES = {code for code, _ in PAYMENT_MODE_CHOICES}


@dataclass
class SettlementResult:
    customer: Customer
    payment: Payment
    receipts: List[Receipt] = field(default_factory=list)
    updated_invoices: List[Invoice] = field(default_factory=list)
    new_closing_balance: Decimal = ZERO
    remainder: Decimal = ZERO

    def as_dict(self):
        """JSON-friendly view; amounts as strings to keep them exact."""
        return {
            "customer_id": self.customer.pk,
            "payment_id": self.payment.pk,
            "amount": str(self.payment.amount),
            "new_closing_balance": str(self.new_closing_balance),
            "remainder": str(self.remainder),
            "receipts": [
                {
                    "receipt_number": r.receipt_number,
                    "invoice_id": r.invoice_id,
                    "amount": str(r.amount),
                    "mode_of_payment": r.mode_of_payment,
                    "paid_by": r.paid_by,
                }
                for r in self.receipts
            ],
            "updated_invoices": [
                {
                    "id": inv.pk,
                    "invoice_number": inv.invoice_number,
                    "amount_paid": str(inv.amount_paid),
                    "status": inv.status,
                }
                for inv in self.updated_invoices
            ],
        }


# ----------------------------
# Settlement workflow
# ----------------------------
def settle(customer_id, amount=None, mode_of_payment=None, *,
           payment_id=None, paid_by="", sender=None) -> SettlementResult:
    """
    Apply one payment to a customer's account, all or nothing.

    Either settle an existing, not yet receipted Payment (`payment_id`,
    e.g. an ingested mobile-money payment) or record a manual one
    (`amount` + `mode_of_payment`). The payment is spread over the
    customer's outstanding invoices oldest first; whatever is left is
    receipted against the balance. The closing balance always drops by
    the full amount.

    The SMS goes out only after the surrounding transaction commits and
    can never fail the settlement.
    """
    requested = to_amount(amount) if amount is not None else None
    if payment_id is None and requested is None:
        raise PaymentMismatch("Either a payment or an amount is required")
    if mode_of_payment and mode_of_payment not in PAYMENT_MODES:
        raise InvalidPaymentMode(
            f"Unknown mode of payment {mode_of_payment!r}")

    try:
        with transaction.atomic():
            result = _settle_locked(
                customer_id, requested, mode_of_payment, payment_id, paid_by)
            # Queued on the outermost transaction; dropped on rollback
            transaction.on_commit(partial(notify_settlement, result, sender))
    except SettlementError:
        raise
    except DatabaseError as exc:
        logger.exception("Settlement for customer %s rolled back", customer_id)
        raise StoreTransactionFailure(
            f"Settlement for customer {customer_id} failed: {exc}") from exc

    logger.info(
        "Settled payment %s (KES %s) for customer %s: %d receipt(s), "
        "balance now %s",
        result.payment.pk, result.payment.amount, customer_id,
        len(result.receipts), result.new_closing_balance,
    )
    return result


def _claim_payment(payment_id, customer, requested, mode_of_payment):
    """Lock the payment and mark it receipted before anything else moves."""
    try:
        payment = Payment.objects.select_for_update().get(pk=payment_id)
    except (Payment.DoesNotExist, ValueError):  # unknown or malformed id
        raise NotFound(f"Payment {payment_id} not found")

    if payment.receipted:
        raise AlreadySettled(f"Payment {payment_id} is already receipted")
    if payment.customer_id is not None and payment.customer_id != customer.pk:
        raise PaymentMismatch(
            f"Payment {payment_id} belongs to another customer")
    if requested is not None and requested != payment.amount:
        raise PaymentMismatch(
            f"Amount {requested} does not match payment amount "
            f"{payment.amount}")

    payment.receipted = True
    payment.customer = customer  # reconciles unattached payments
    if mode_of_payment:
        payment.mode_of_payment = mode_of_payment
    payment.save(update_fields=["receipted", "customer", "mode_of_payment"])
    return payment


def _settle_locked(customer_id, requested, mode_of_payment, payment_id,
                   paid_by):
    # Lock the customer row: serialises settlements for the same customer
    try:
        customer = Customer.objects.select_for_update().get(pk=customer_id)
    except (Customer.DoesNotExist, ValueError):
        raise NotFound(f"Customer {customer_id} not found")

    if payment_id is not None:
        payment = _claim_payment(
            payment_id, customer, requested, mode_of_payment)
    else:
        payment = Payment.objects.create(
            customer=customer,
            amount=requested,
            mode_of_payment=mode_of_payment or "CASH",
            receipted=True,
        )

    settled_amount = payment.amount
    # Single snapshot, read under lock
    invoices = list(
        Invoice.objects.outstanding_for(customer).select_for_update())
    by_id = {inv.pk: inv for inv in invoices}
    allocations, remainder = allocate(settled_amount, invoices)

    def new_receipt(invoice, applied):
        return Receipt.objects.create(
            receipt_number=generate_receipt_number(),
            customer=customer,
            invoice=invoice,
            payment=payment,
            amount=applied,
            mode_of_payment=payment.mode_of_payment,
            paid_by=paid_by or payment.first_name,
            transaction_code=payment.transaction_id or "",
            phone_number=customer.phone_number,
        )

    result = SettlementResult(customer=customer, payment=payment)
    for allocation in allocations:
        invoice = by_id[allocation.invoice_id]
        invoice.apply_payment(allocation.applied_amount)
        result.updated_invoices.append(invoice)
        result.receipts.append(new_receipt(invoice, allocation.applied_amount))

    if remainder > ZERO:
        # Unattached credit against the closing balance
        result.receipts.append(new_receipt(None, remainder))

    previous_balance = customer.closing_balance
    customer.closing_balance = previous_balance - settled_amount
    customer.save(update_fields=["closing_balance"])

    result.new_closing_balance = customer.closing_balance
    result.remainder = remainder

    # AUDIT LOG
    log_action(
        action="settle",
        instance=payment,
        changes={
            "customer_id": customer.pk,
            "amount": str(settled_amount),
            "previous_balance": str(previous_balance),
            "new_balance": str(customer.closing_balance),
            "invoices": {
                str(a.invoice_id): str(a.applied_amount) for a in allocations
            },
            "remainder": str(remainder),
            "receipts": [r.receipt_number for r in result.receipts],
        },
    )
    return result


def notify_settlement(result: SettlementResult, sender=None) -> Optional[bool]:
    """
    Best-effort confirmation SMS; failures are logged, never raised.
    Runs as an on-commit callback: anything escaping here would reach the
    caller after the settlement is already stored.
    """
    customer = result.customer
    try:
        sender = sender or build_sms_sender()
        message = settlement_message(
            customer, result.payment.amount, result.new_closing_balance)
        send_sms(customer.phone_number, message, sender, customer=customer)
        return True
    except Exception:
        logger.exception(
            "Settlement SMS to customer %s failed (payment %s)",
            customer.pk, result.payment.pk)
        return False
