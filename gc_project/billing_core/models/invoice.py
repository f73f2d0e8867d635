from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import InvoiceQuerySet
from .customer import Customer

INV_STATUS_CHOICES = [
    ("UNPAID", "Unpaid"),
    ("PPAID", "Partially paid"),
    ("PAID", "Paid"),
    ("CANCELLED", "Cancelled"),
]


def invoice_status_for(amount_paid, invoice_amount):
    """Status derived purely from how much of the invoice is covered."""
    if amount_paid >= invoice_amount:
        return "PAID"
    if amount_paid > 0:
        return "PPAID"
    return "UNPAID"


class Invoice(models.Model):  # One billing-cycle charge for a customer

    # Deleting a customer removes its invoices
    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name="invoices"
    )

    # human-readable (e.g. "INV-2025-001")
    invoice_number = models.CharField(max_length=64, unique=True)

    invoice_amount = models.DecimalField(max_digits=12, decimal_places=2)
    # Only ever grows, through allocation
    amount_paid = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="UNPAID"
    )

    # Defines settlement order (oldest debt first)
    created_at = models.DateTimeField(default=timezone.now)

    objects = InvoiceQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["customer", "status", "created_at"],
                         name="inv_cust_status_created_idx"),
        ]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(invoice_amount__gte=0),
                name="inv_non_negative_amount",
            ),
            # 0 <= amount_paid <= invoice_amount
            models.CheckConstraint(
                condition=models.Q(amount_paid__gte=0) &
                models.Q(amount_paid__lte=models.F("invoice_amount")),
                name="inv_amount_paid_within_amount",
            ),
        ]

    def __str__(self):
        return f"Inv {self.invoice_number} ({self.status})"

    @property
    def due(self):
        return self.invoice_amount - self.amount_paid

    def clean(self):
        if self.amount_paid is None or self.invoice_amount is None:
            return
        if self.amount_paid < 0 or self.amount_paid > self.invoice_amount:
            raise ValidationError(
                "Amount paid must be between 0 and the invoice amount")
        # Cancelled invoices keep their status, everything else is derived
        if self.status != "CANCELLED":
            expected = invoice_status_for(
                self.amount_paid, self.invoice_amount)
            if self.status != expected:
                raise ValidationError(
                    f"Status {self.status} does not match amount paid "
                    f"({expected} expected)"
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # will trigger clean()
        return super().save(*args, **kwargs)

    def apply_payment(self, amount):
        """Record `amount` against this invoice and re-derive its status."""
        if self.status == "CANCELLED":
            raise ValidationError("Cannot apply payment to a cancelled invoice")
        if amount <= 0:
            raise ValidationError("Applied amount must be positive")
        if amount > self.due:
            raise ValidationError(
                "Applied amount cannot exceed invoice due amount")

        self.amount_paid = self.amount_paid + amount
        self.status = invoice_status_for(self.amount_paid, self.invoice_amount)
        self.save(update_fields=["amount_paid", "status"])
        return self
