from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .customer import Customer

PAYMENT_MODE_CHOICES = [
    ("CASH", "Cash"),
    ("MPESA", "M-Pesa"),
    ("BANK", "Bank"),
]


# ---------- Payment ----------
# One inbound money movement, settled at most once
class Payment(models.Model):
    # Null while a mobile-money payment waits for manual reconciliation.
    # Payments outlive the customer record (money was still received).
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    mode_of_payment = models.CharField(
        max_length=10, choices=PAYMENT_MODE_CHOICES, default="CASH"
    )

    # Flipped to True exactly once, by the settlement engine
    receipted = models.BooleanField(default=False)

    # Mobile-money transaction code (e.g. "QK12ABC345"), guards re-ingestion
    transaction_id = models.CharField(
        max_length=64, unique=True, null=True, blank=True
    )
    # Payer details as reported by the mobile-money callback
    first_name = models.CharField(max_length=100, blank=True, default="")
    ref = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["customer", "receipted"],
                         name="payment_customer_rcpt_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_positive_amount",
            ),
        ]

    def __str__(self):
        code = self.transaction_id or self.pk
        return f"Payment {code} {self.mode_of_payment} {self.amount}"

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Payment amount must be positive")
        # A settled payment can never be un-settled
        if self.pk and not self.receipted:
            was_receipted = (
                Payment.objects.filter(pk=self.pk, receipted=True).exists()
            )
            if was_receipted:
                raise ValidationError("Cannot un-receipt a settled payment.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
