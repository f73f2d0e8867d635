from django.db.models import Prefetch

from ..managers import InvoiceQuerySet
from ..models import Customer, Invoice


def customers_with_high_debt():
    """
    Active customers with unpaid invoices whose closing balance is more
    than twice their monthly charge, grouped by collection day:

        {"MONDAY": {"count": 2, "customers": [...]}, ...}
    """
    customers = (
        Customer.objects.active()
        .filter(invoices__status__in=InvoiceQuerySet.OUTSTANDING)
        .distinct()
        .order_by("garbage_collection_day", "first_name", "pk")
        .prefetch_related(
            Prefetch(
                "invoices",
                queryset=Invoice.objects.outstanding().order_by("created_at"),
                to_attr="outstanding_invoices",
            )
        )
    )

    grouped = {}
    for customer in customers:
        if customer.closing_balance <= 2 * customer.monthly_charge:
            continue
        day = grouped.setdefault(
            customer.garbage_collection_day, {"count": 0, "customers": []})
        day["count"] += 1
        day["customers"].append({
            "id": customer.pk,
            "name": customer.full_name,
            "phone_number": customer.phone_number,
            "email": customer.email,
            "monthly_charge": customer.monthly_charge,
            "closing_balance": customer.closing_balance,
            "invoices": [
                {
                    "invoice_number": inv.invoice_number,
                    "invoice_amount": inv.invoice_amount,
                    "amount_paid": inv.amount_paid,
                    "outstanding": inv.due,
                }
                for inv in customer.outstanding_invoices
            ],
        })
    return grouped
