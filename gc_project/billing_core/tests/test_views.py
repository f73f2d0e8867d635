from decimal import Decimal

from django.test import Client, TestCase, override_settings
from django.urls import reverse

from ..models import Payment, Receipt
from .factories import make_customer, make_invoice

API_KEY = "test-billing-key"


@override_settings(BILLING_API_KEY=API_KEY)
class ManualReceiptViewTests(TestCase):

    def setUp(self):
        self.customer = make_customer(closing_balance="1000.00")
        self.invoice = make_invoice(self.customer, "1000.00")
        self.url = reverse("billing_core:manual-receipt")

    def post(self, data, **kwargs):
        kwargs.setdefault("headers", {"X-Api-Key": API_KEY})
        return self.client.post(self.url, data,
                                content_type="application/json", **kwargs)

    def valid_data(self, **overrides):
        data = {
            "customer_id": self.customer.pk,
            "amount": "600",
            "mode_of_payment": "CASH",
            "paid_by": "Wanjiku",
        }
        data.update(overrides)
        return data

    def test_manual_cash_payment_is_receipted(self):
        response = self.post(self.valid_data())

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["new_closing_balance"], "400.00")
        self.assertEqual(body["receipts"][0]["invoice_id"], self.invoice.pk)
        self.assertEqual(body["updated_invoices"][0]["status"], "PPAID")

        payment = Payment.objects.get(pk=body["payment_id"])
        self.assertTrue(payment.receipted)
        self.assertEqual(payment.mode_of_payment, "CASH")

    def test_form_post_is_accepted(self):
        response = self.client.post(
            self.url, self.valid_data(amount="100", mode_of_payment="BANK"),
            headers={"X-Api-Key": API_KEY})
        self.assertEqual(response.status_code, 201)

    def test_missing_fields(self):
        response = self.post({"customer_id": self.customer.pk})
        self.assertEqual(response.status_code, 400)
        self.assertIn("amount", response.json()["error"])

    def test_malformed_json(self):
        for body in ("{not json", "[1, 2]"):
            with self.subTest(body=body):
                response = self.client.post(
                    self.url, body, content_type="application/json",
                    headers={"X-Api-Key": API_KEY})
                self.assertEqual(response.status_code, 400)

    def test_invalid_amounts(self):
        for amount in ("-5", "12345678901234", "1e30"):
            with self.subTest(amount=amount):
                response = self.post(self.valid_data(amount=amount))
                self.assertEqual(response.status_code, 400)
        self.assertFalse(Receipt.objects.exists())

    def test_unknown_mode_of_payment(self):
        response = self.post(self.valid_data(mode_of_payment="CHEQUE"))

        self.assertEqual(response.status_code, 400)
        self.assertIn("CHEQUE", response.json()["error"])
        self.assertFalse(Payment.objects.exists())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.closing_balance, Decimal("1000.00"))

    def test_model_validation_error_is_a_bad_request(self):
        # paid_by longer than the receipt column allows
        response = self.post(self.valid_data(paid_by="x" * 300))

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["ok"])
        self.assertFalse(Receipt.objects.exists())

    def test_unknown_customer(self):
        response = self.post(self.valid_data(customer_id=987654))
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["ok"])

    def test_only_post_is_allowed(self):
        response = self.client.get(self.url, headers={"X-Api-Key": API_KEY})
        self.assertEqual(response.status_code, 405)


@override_settings(BILLING_API_KEY=API_KEY)
class ApiKeyTests(TestCase):

    def setUp(self):
        self.customer = make_customer()
        self.url = reverse("billing_core:manual-receipt")
        self.data = {
            "customer_id": self.customer.pk,
            "amount": "100",
            "mode_of_payment": "CASH",
            "paid_by": "Wanjiku",
        }

    def test_missing_key(self):
        response = self.client.post(self.url, self.data,
                                    content_type="application/json")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(Payment.objects.exists())

    def test_wrong_key(self):
        response = self.client.post(self.url, self.data,
                                    content_type="application/json",
                                    headers={"X-Api-Key": "guess"})
        self.assertEqual(response.status_code, 403)

    @override_settings(BILLING_API_KEY="")
    def test_endpoints_closed_without_configured_key(self):
        response = self.client.post(self.url, self.data,
                                    content_type="application/json",
                                    headers={"X-Api-Key": "anything"})
        self.assertEqual(response.status_code, 403)

    def test_no_csrf_token_needed(self):
        client = Client(enforce_csrf_checks=True)
        response = client.post(self.url, self.data,
                               content_type="application/json",
                               headers={"X-Api-Key": API_KEY})
        self.assertEqual(response.status_code, 201)


@override_settings(BILLING_API_KEY=API_KEY)
class SettlePaymentViewTests(TestCase):

    def setUp(self):
        self.customer = make_customer(closing_balance="300.00")
        make_invoice(self.customer, "300.00")
        # mobile-money payment that could not be matched on arrival
        self.payment = Payment.objects.create(
            amount=Decimal("300.00"), mode_of_payment="MPESA",
            transaction_id="QKV0000001", first_name="JOHN", ref="wrong-ref")
        self.url = reverse("billing_core:settle-payment",
                           args=[self.payment.pk])

    def post(self, data, url=None):
        return self.client.post(url or self.url, data,
                                content_type="application/json",
                                headers={"X-Api-Key": API_KEY})

    def test_unattached_payment_is_settled_against_customer(self):
        response = self.post({"customer_id": self.customer.pk})

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["new_closing_balance"], "0.00")
        self.assertEqual(body["receipts"][0]["paid_by"], "JOHN")
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.customer, self.customer)

    def test_second_settlement_is_rejected(self):
        self.assertEqual(
            self.post({"customer_id": self.customer.pk}).status_code, 201)

        response = self.post({"customer_id": self.customer.pk})

        self.assertEqual(response.status_code, 400)
        self.assertIn("already receipted", response.json()["error"])
        self.assertEqual(Receipt.objects.count(), 1)

    def test_customer_id_is_required(self):
        self.assertEqual(self.post({}).status_code, 400)

    def test_unknown_mode_of_payment(self):
        response = self.post({"customer_id": self.customer.pk,
                              "mode_of_payment": "CHEQUE"})
        self.assertEqual(response.status_code, 400)
        self.payment.refresh_from_db()
        self.assertFalse(self.payment.receipted)

    def test_unknown_payment(self):
        url = reverse("billing_core:settle-payment", args=[987654])
        response = self.post({"customer_id": self.customer.pk}, url=url)
        self.assertEqual(response.status_code, 404)
