from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import CustomerQuerySet

CUSTOMER_STATUS_CHOICES = [
    ("ACTIVE", "Active"),
    ("DORMANT", "Dormant"),
]

COLLECTION_DAY_CHOICES = [
    ("MONDAY", "Monday"),
    ("TUESDAY", "Tuesday"),
    ("WEDNESDAY", "Wednesday"),
    ("THURSDAY", "Thursday"),
    ("FRIDAY", "Friday"),
    ("SATURDAY", "Saturday"),
    ("SUNDAY", "Sunday"),
]


# ---------- Customer ----------
# A household or business served on a weekly collection route
class Customer(models.Model):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, default="")

    # Also used as the mobile-money account (bill reference) number
    phone_number = models.CharField(max_length=20, unique=True)
    email = models.EmailField(null=True, blank=True)

    # Recurring fee billed every cycle
    monthly_charge = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    status = models.CharField(
        max_length=10, choices=CUSTOMER_STATUS_CHOICES, default="ACTIVE"
    )

    # Signed running total
    """ positive = amount owed, negative = credit from overpayment.
        Only the settlement engine and invoice generation write it. """
    closing_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    garbage_collection_day = models.CharField(
        max_length=10, choices=COLLECTION_DAY_CHOICES, default="MONDAY"
    )
    created_at = models.DateTimeField(default=timezone.now)

    objects = CustomerQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["status", "garbage_collection_day"],
                         name="customer_status_day_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.phone_number})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def clean(self):
        if self.monthly_charge is not None and self.monthly_charge < 0:
            raise ValidationError("Monthly charge must be >= 0")
        # Phone numbers are matched against bill references, keep them tidy
        if self.phone_number:
            self.phone_number = self.phone_number.strip()
        return super().clean()

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
