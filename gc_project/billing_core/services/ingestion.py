import logging
from collections import Counter
from datetime import datetime

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import InvalidAmount, SettlementError
from ..models import Payment, RawMobileMoneyTransaction
from .amounts import to_amount
from .audit_helper import log_action
from .customers import find_customer_by_reference
from .settlement import settle

logger = logging.getLogger(__name__)

SETTLED = "settled"
UNATTACHED = "unattached"
DUPLICATE = "duplicates"
SKIPPED = "skipped"
FAILED = "failed"


def parse_trans_time(value):
    """Provider timestamps look like '20250917143005'; fall back to now."""
    try:
        naive = datetime.strptime(value or "", "%Y%m%d%H%M%S")
    except ValueError:
        return timezone.now()
    return timezone.make_aware(naive)


def process_mobile_money_transactions(sender=None, limit=None) -> dict:
    """
    One sweep over unprocessed mobile-money callbacks, oldest first.

    Each callback is handled in its own transaction: a failure rolls back
    only that callback, which stays unprocessed and is retried next sweep.
    Returns a count per outcome.
    """
    pending = RawMobileMoneyTransaction.objects.unprocessed()
    if limit:
        pending = pending[:limit]
    pending_ids = list(pending.values_list("pk", flat=True))

    counts = Counter({
        SETTLED: 0, UNATTACHED: 0, DUPLICATE: 0, SKIPPED: 0, FAILED: 0})
    if not pending_ids:
        logger.info("No unprocessed mobile-money transactions found.")
        return dict(counts)

    for raw_id in pending_ids:
        counts[ingest_transaction(raw_id, sender=sender)] += 1

    logger.info("Mobile-money sweep finished: %s", dict(counts))
    return dict(counts)


def ingest_transaction(raw_id, sender=None) -> str:
    try:
        with transaction.atomic():
            return _ingest_locked(raw_id, sender)
    except (SettlementError, DatabaseError, ValidationError):
        logger.exception(
            "Mobile-money transaction %s failed, left for next sweep", raw_id)
        return FAILED


def _mark_processed(raw):
    raw.processed = True
    raw.save(update_fields=["processed"])


def _ingest_locked(raw_id, sender):
    # Overlapping sweeps: whoever locks the row first owns it
    raw = RawMobileMoneyTransaction.objects.select_for_update().get(pk=raw_id)
    if raw.processed:
        return SKIPPED

    logger.info("Processing transaction %s for amount %s",
                raw.trans_id, raw.trans_amount)
    try:
        amount = to_amount(raw.trans_amount)
    except InvalidAmount:
        # Left unprocessed for manual review
        logger.warning("Invalid payment amount %r for transaction %s. Skipping.",
                       raw.trans_amount, raw.trans_id)
        return SKIPPED

    if Payment.objects.filter(transaction_id=raw.trans_id).exists():
        logger.warning("Transaction %s already exists as a payment. Skipping.",
                       raw.trans_id)
        _mark_processed(raw)
        return DUPLICATE

    customer = find_customer_by_reference(raw.bill_ref_number)
    payment = Payment.objects.create(
        customer=customer,
        amount=amount,
        mode_of_payment="MPESA",
        receipted=False,
        transaction_id=raw.trans_id,
        first_name=raw.first_name,
        ref=raw.bill_ref_number,
        created_at=parse_trans_time(raw.trans_time),
    )

    if customer is None:
        logger.warning(
            "No customer found with bill reference %r; payment %s kept "
            "for manual reconciliation.", raw.bill_ref_number, payment.pk)
        log_action(
            action="ingest_unattached",
            instance=payment,
            changes={"trans_id": raw.trans_id, "ref": raw.bill_ref_number},
        )
        _mark_processed(raw)
        return UNATTACHED

    settle(
        customer.pk,
        mode_of_payment="MPESA",
        payment_id=payment.pk,
        paid_by=raw.first_name,
        sender=sender,
    )
    _mark_processed(raw)
    return SETTLED
