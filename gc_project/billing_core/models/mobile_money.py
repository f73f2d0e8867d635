from django.db import models
from django.utils import timezone

from ..managers import RawTransactionQuerySet


# ---------- Raw mobile-money callback ----------
class RawMobileMoneyTransaction(models.Model):
    """
    Confirmation callback as received from the mobile-money provider.
    Stored verbatim; only `processed` ever changes (False -> True, once).
    """
    trans_id = models.CharField(max_length=64, unique=True)  # "QK12ABC345"
    # Provider timestamp, "YYYYMMDDHHMMSS"
    trans_time = models.CharField(max_length=20, blank=True, default="")
    # Kept as text: a malformed amount must be stored, then skipped
    trans_amount = models.CharField(max_length=32)
    # Account number typed by the payer, expected to be a phone number
    bill_ref_number = models.CharField(max_length=64, blank=True, default="")
    msisdn = models.CharField(max_length=20, blank=True, default="")
    first_name = models.CharField(max_length=100, blank=True, default="")

    processed = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    objects = RawTransactionQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["processed", "created_at"],
                         name="rawtx_processed_created_idx"),
        ]

    def __str__(self):
        state = "processed" if self.processed else "pending"
        return f"{self.trans_id} {self.trans_amount} ({state})"
