import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["object_type", "object_id"], name="audit_object_idx"),
                    models.Index(fields=["created_at"], name="audit_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(blank=True, default="", max_length=100)),
                ("phone_number", models.CharField(max_length=20, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("monthly_charge", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("DORMANT", "Dormant")], default="ACTIVE", max_length=10)),
                ("closing_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("garbage_collection_day", models.CharField(choices=[("MONDAY", "Monday"), ("TUESDAY", "Tuesday"), ("WEDNESDAY", "Wednesday"), ("THURSDAY", "Thursday"), ("FRIDAY", "Friday"), ("SATURDAY", "Saturday"), ("SUNDAY", "Sunday")], default="MONDAY", max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["status", "garbage_collection_day"], name="customer_status_day_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RawMobileMoneyTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("trans_id", models.CharField(max_length=64, unique=True)),
                ("trans_time", models.CharField(blank=True, default="", max_length=20)),
                ("trans_amount", models.CharField(max_length=32)),
                ("bill_ref_number", models.CharField(blank=True, default="", max_length=64)),
                ("msisdn", models.CharField(blank=True, default="", max_length=20)),
                ("first_name", models.CharField(blank=True, default="", max_length=100)),
                ("processed", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["processed", "created_at"], name="rawtx_processed_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=64, unique=True)),
                ("invoice_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("status", models.CharField(choices=[("UNPAID", "Unpaid"), ("PPAID", "Partially paid"), ("PAID", "Paid"), ("CANCELLED", "Cancelled")], default="UNPAID", max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invoices", to="billing_core.customer")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["customer", "status", "created_at"], name="inv_cust_status_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("invoice_amount__gte", 0)), name="inv_non_negative_amount"),
                    models.CheckConstraint(condition=models.Q(("amount_paid__gte", 0), ("amount_paid__lte", models.F("invoice_amount"))), name="inv_amount_paid_within_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("mode_of_payment", models.CharField(choices=[("CASH", "Cash"), ("MPESA", "M-Pesa"), ("BANK", "Bank")], default="CASH", max_length=10)),
                ("receipted", models.BooleanField(default=False)),
                ("transaction_id", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("first_name", models.CharField(blank=True, default="", max_length=100)),
                ("ref", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("customer", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payments", to="billing_core.customer")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["customer", "receipted"], name="payment_customer_rcpt_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_positive_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("receipt_number", models.CharField(max_length=32, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("mode_of_payment", models.CharField(choices=[("CASH", "Cash"), ("MPESA", "M-Pesa"), ("BANK", "Bank")], max_length=10)),
                ("paid_by", models.CharField(blank=True, default="", max_length=200)),
                ("transaction_code", models.CharField(blank=True, default="", max_length=64)),
                ("phone_number", models.CharField(blank=True, default="", max_length=20)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="receipts", to="billing_core.customer")),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="receipts", to="billing_core.invoice")),
                ("payment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="billing_core.payment")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["customer", "created_at"], name="receipt_customer_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="receipt_positive_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SmsMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_sms_id", models.CharField(max_length=64, unique=True)),
                ("mobile", models.CharField(max_length=20)),
                ("message", models.TextField()),
                ("status", models.CharField(choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed")], default="pending", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("customer", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sms_messages", to="billing_core.customer")),
            ],
        ),
    ]
