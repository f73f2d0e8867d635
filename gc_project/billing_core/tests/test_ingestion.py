import datetime
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from ..models import AuditLog, Payment, RawMobileMoneyTransaction, Receipt
from ..services import process_mobile_money_transactions
from ..services.ingestion import parse_trans_time
from ..tasks import sweep_mobile_money_transactions
from .factories import (FakeSender, make_customer, make_invoice,
                        make_raw_transaction)


class IngestionTests(TestCase):

    def setUp(self):
        self.customer = make_customer(phone_number="0712345678",
                                      closing_balance="1000.00")
        self.invoice = make_invoice(self.customer, "1000.00")
        self.sender = FakeSender()

    def test_unknown_reference_is_kept_as_unattached_payment(self):
        raw = make_raw_transaction("QKA0000001", "450.00", bill_ref="ACC-77")

        counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["unattached"], 1)
        raw.refresh_from_db()
        self.assertTrue(raw.processed)

        payment = Payment.objects.get(transaction_id="QKA0000001")
        self.assertIsNone(payment.customer)
        self.assertFalse(payment.receipted)
        self.assertEqual(payment.amount, Decimal("450.00"))
        self.assertEqual(payment.ref, "ACC-77")
        self.assertFalse(Receipt.objects.exists())
        self.assertTrue(
            AuditLog.objects.filter(action="ingest_unattached").exists())

    def test_reference_matches_customer_whatever_the_phone_format(self):
        references = ["254712345678", "+254712345678", "0712345678",
                      "712345678", " 0712 345 678 "]
        for n, reference in enumerate(references):
            make_raw_transaction(f"QKB000000{n}", "100", bill_ref=reference)

        counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["settled"], len(references))
        self.customer.refresh_from_db()
        self.invoice.refresh_from_db()
        self.assertEqual(self.customer.closing_balance, Decimal("500.00"))
        self.assertEqual(self.invoice.amount_paid, Decimal("500.00"))
        self.assertEqual(self.invoice.status, "PPAID")

    def test_settled_payment_is_receipted_with_payer_name(self):
        make_raw_transaction("QKC0000001", "1,000.00", first_name="JOHN")

        process_mobile_money_transactions(sender=self.sender)

        payment = Payment.objects.get(transaction_id="QKC0000001")
        self.assertTrue(payment.receipted)
        self.assertEqual(payment.customer, self.customer)
        self.assertEqual(payment.mode_of_payment, "MPESA")
        receipt = Receipt.objects.get(payment=payment)
        self.assertEqual(receipt.paid_by, "JOHN")
        self.assertEqual(receipt.transaction_code, "QKC0000001")
        self.assertEqual(receipt.amount, Decimal("1000.00"))

    def test_invalid_amounts_stay_unprocessed(self):
        for n, amount in enumerate(["abc", "0", "-20", ""]):
            make_raw_transaction(f"QKD000000{n}", amount)

        counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["skipped"], 4)
        self.assertEqual(
            RawMobileMoneyTransaction.objects.unprocessed().count(), 4)
        self.assertFalse(Payment.objects.exists())

    def test_out_of_range_amounts_do_not_block_later_rows(self):
        make_raw_transaction("QKD1000001", "12345678901234")
        make_raw_transaction("QKD1000002", "1e30")
        good = make_raw_transaction("QKD1000003", "100")

        counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["skipped"], 2)
        self.assertEqual(counts["settled"], 1)
        good.refresh_from_db()
        self.assertTrue(good.processed)
        self.assertEqual(
            list(RawMobileMoneyTransaction.objects.unprocessed()
                 .values_list("trans_id", flat=True)),
            ["QKD1000001", "QKD1000002"])

    def test_row_failing_model_validation_is_left_for_review(self):
        # payer name longer than Payment.first_name allows
        bad = make_raw_transaction("QKD2000001", "100", first_name="X" * 150)
        good = make_raw_transaction("QKD2000002", "100")

        counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["failed"], 1)
        self.assertEqual(counts["settled"], 1)
        bad.refresh_from_db()
        good.refresh_from_db()
        self.assertFalse(bad.processed)
        self.assertTrue(good.processed)
        self.assertFalse(
            Payment.objects.filter(transaction_id="QKD2000001").exists())

    def test_already_recorded_transaction_is_not_paid_twice(self):
        Payment.objects.create(
            customer=self.customer, amount=Decimal("300.00"),
            mode_of_payment="MPESA", transaction_id="QKE0000001",
            receipted=True)
        raw = make_raw_transaction("QKE0000001", "300")

        counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["duplicates"], 1)
        raw.refresh_from_db()
        self.assertTrue(raw.processed)
        self.assertEqual(
            Payment.objects.filter(transaction_id="QKE0000001").count(), 1)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.closing_balance, Decimal("1000.00"))

    def test_second_sweep_is_a_no_op(self):
        make_raw_transaction("QKF0000001", "200")
        first = process_mobile_money_transactions(sender=self.sender)
        second = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(first["settled"], 1)
        self.assertEqual(sum(second.values()), 0)
        self.assertEqual(Receipt.objects.count(), 1)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.closing_balance, Decimal("800.00"))

    def test_failed_row_rolls_back_and_the_sweep_continues(self):
        failing = make_raw_transaction("QKG0000001", "200")
        other = make_raw_transaction("QKG0000002", "50", bill_ref="UNKNOWN")

        with mock.patch("billing_core.services.ingestion.settle",
                        side_effect=DatabaseError("lock timeout")):
            counts = process_mobile_money_transactions(sender=self.sender)

        self.assertEqual(counts["failed"], 1)
        self.assertEqual(counts["unattached"], 1)
        failing.refresh_from_db()
        other.refresh_from_db()
        self.assertFalse(failing.processed)
        self.assertTrue(other.processed)
        # the payment created for the failing row went with the rollback
        self.assertFalse(
            Payment.objects.filter(transaction_id="QKG0000001").exists())

        # retried on the next sweep
        counts = process_mobile_money_transactions(sender=self.sender)
        self.assertEqual(counts["settled"], 1)
        failing.refresh_from_db()
        self.assertTrue(failing.processed)

    def test_limit_caps_rows_per_sweep(self):
        for n in range(3):
            make_raw_transaction(f"QKH000000{n}", "10")

        counts = process_mobile_money_transactions(sender=self.sender, limit=2)

        self.assertEqual(counts["settled"], 2)
        self.assertEqual(
            RawMobileMoneyTransaction.objects.unprocessed().count(), 1)

    def test_payment_keeps_provider_timestamp(self):
        make_raw_transaction("QKI0000001", "10", trans_time="20250917143005")
        process_mobile_money_transactions(sender=self.sender)

        payment = Payment.objects.get(transaction_id="QKI0000001")
        self.assertEqual(
            payment.created_at,
            timezone.make_aware(datetime.datetime(2025, 9, 17, 14, 30, 5)))


class SweepEntryPointTests(TestCase):

    def setUp(self):
        make_customer(phone_number="0722000111")
        make_raw_transaction("QKJ0000001", "75", bill_ref="0722000111")
        make_raw_transaction("QKJ0000002", "75", bill_ref="nobody")

    def test_celery_task_returns_counts(self):
        counts = sweep_mobile_money_transactions()
        self.assertEqual(counts["settled"], 1)
        self.assertEqual(counts["unattached"], 1)
        self.assertEqual(counts["failed"], 0)

    def test_management_command_reports_summary(self):
        out = StringIO()
        call_command("process_mpesa", stdout=out)
        output = out.getvalue()
        self.assertIn("settled=1", output)
        self.assertIn("unattached=1", output)
        self.assertFalse(
            RawMobileMoneyTransaction.objects.unprocessed().exists())


class ParseTransTimeTests(TestCase):

    def test_provider_format(self):
        parsed = parse_trans_time("20250101080000")
        self.assertTrue(timezone.is_aware(parsed))
        self.assertEqual(timezone.localtime(parsed).hour, 8)

    def test_garbage_falls_back_to_now(self):
        before = timezone.now()
        parsed = parse_trans_time("not-a-time")
        self.assertGreaterEqual(parsed, before)
        self.assertIsNotNone(parse_trans_time(None))
