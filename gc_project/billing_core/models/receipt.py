from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .customer import Customer
from .invoice import Invoice
from .payment import PAYMENT_MODE_CHOICES, Payment


# ---------- Receipt ----------
# Immutable audit record of one applied amount
class Receipt(models.Model):
    # "RCPT" + random digits, unique across the whole system
    receipt_number = models.CharField(max_length=32, unique=True)

    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name="receipts"
    )
    # Null means an unattached balance adjustment (overpayment / credit).
    # RESTRICT: an invoice with receipts can only go together with its
    # customer, never on its own.
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.RESTRICT,
        related_name="receipts",
    )
    # One payment may be split into several receipts
    payment = models.ForeignKey(
        Payment,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="receipts",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    mode_of_payment = models.CharField(
        max_length=10, choices=PAYMENT_MODE_CHOICES)
    paid_by = models.CharField(max_length=200, blank=True, default="")
    transaction_code = models.CharField(max_length=64, blank=True, default="")
    phone_number = models.CharField(max_length=20, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["customer", "created_at"],
                         name="receipt_customer_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="receipt_positive_amount",
            ),
        ]

    def __str__(self):
        target = self.invoice.invoice_number if self.invoice_id else "balance"
        return f"{self.receipt_number} → {target} ({self.amount})"

    def clean(self):
        if self.pk:
            raise ValidationError("Receipts are immutable once issued.")
        # invoice must belong to the receipt's customer
        if self.invoice_id and self.customer_id:
            inv_customer_id = (
                Invoice.objects.only("customer_id")
                .get(pk=self.invoice_id).customer_id
            )
            if inv_customer_id != self.customer_id:
                raise ValidationError(
                    "Receipt invoice must belong to the same customer.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
