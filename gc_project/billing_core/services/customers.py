import logging

from django.conf import settings
from django.db import transaction

from ..exceptions import NotFound
from ..models import Customer
from .audit_helper import log_action
from .notifications import normalize_phone_number

logger = logging.getLogger(__name__)


def phone_number_variants(reference, country_code=None):
    """Every stored spelling a canonical number may have been saved under."""
    country_code = country_code or settings.SMS_COUNTRY_CODE
    canonical = normalize_phone_number(reference, country_code)
    if not canonical:
        return []
    local = canonical[len(country_code):]
    return [canonical, f"+{canonical}", f"0{local}", local]


def find_customer_by_reference(reference):
    """Resolve a mobile-money bill reference to a customer, or None."""
    variants = phone_number_variants(reference or "")
    if not variants:
        return None
    # phone_number is unique, but two spellings of one number could both
    # exist from older imports: take the oldest deterministically
    return (
        Customer.objects.filter(phone_number__in=variants)
        .order_by("created_at", "pk")
        .first()
    )


def delete_customer(customer_id):
    """
    Remove a customer with its invoices and receipts in one transaction.
    Payments stay on record, detached from the customer.
    """
    with transaction.atomic():
        try:
            customer = Customer.objects.select_for_update().get(pk=customer_id)
        except Customer.DoesNotExist:
            raise NotFound(f"Customer {customer_id} not found")

        log_action(
            action="delete",
            instance=customer,
            changes={
                "phone_number": customer.phone_number,
                "closing_balance": str(customer.closing_balance),
                "invoices": customer.invoices.count(),
                "receipts": customer.receipts.count(),
            },
        )
        deleted, per_model = customer.delete()

    logger.info("Deleted customer %s (%d rows)", customer_id, deleted)
    return per_model
