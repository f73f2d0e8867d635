from django.db import models

from .customer import Customer

SMS_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("sent", "Sent"),
    ("failed", "Failed"),
]


class SmsMessage(models.Model):  # Outbound text, kept for support queries
    client_sms_id = models.CharField(max_length=64, unique=True)
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="sms_messages",
    )
    mobile = models.CharField(max_length=20)  # normalized, e.g. 2547XXXXXXXX
    message = models.TextField()
    status = models.CharField(
        max_length=10, choices=SMS_STATUS_CHOICES, default="pending"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"SMS {self.client_sms_id} to {self.mobile} ({self.status})"
