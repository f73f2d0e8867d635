from django.contrib.admin.sites import AdminSite
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse

from ..admin import ReceiptAdmin, RawMobileMoneyTransactionAdmin
from ..models import Payment, RawMobileMoneyTransaction, Receipt
from .factories import make_customer, make_invoice, make_raw_transaction


class LedgerAdminTests(TestCase):

    def setUp(self):
        self.site = AdminSite()
        self.request = RequestFactory().get("/")
        self.request.user = get_user_model().objects.create_superuser(
            "admin", "admin@example.com", "pass")

    def test_receipts_cannot_be_added_deleted_or_edited(self):
        model_admin = ReceiptAdmin(Receipt, self.site)

        self.assertFalse(model_admin.has_add_permission(self.request))
        self.assertFalse(model_admin.has_delete_permission(self.request))
        self.assertEqual(model_admin.get_actions(self.request), {})
        self.assertIn("amount",
                      model_admin.get_readonly_fields(self.request))

    def test_raw_transactions_only_offer_reprocessing(self):
        model_admin = RawMobileMoneyTransactionAdmin(
            RawMobileMoneyTransaction, self.site)
        self.assertEqual(list(model_admin.get_actions(self.request)),
                         ["process_selected_transactions"])


class ProcessSelectedTransactionsTests(TestCase):

    def setUp(self):
        user = get_user_model().objects.create_superuser(
            "admin", "admin@example.com", "pass")
        self.client.force_login(user)
        customer = make_customer(phone_number="0712345678",
                                 closing_balance="500.00")
        make_invoice(customer, "500.00")
        self.url = reverse(
            "admin:billing_core_rawmobilemoneytransaction_changelist")

    def test_selected_rows_are_ingested(self):
        matched = make_raw_transaction("QKX0000001", "500")
        unmatched = make_raw_transaction("QKX0000002", "20", bill_ref="x")
        untouched = make_raw_transaction("QKX0000003", "20")

        response = self.client.post(self.url, {
            "action": "process_selected_transactions",
            "_selected_action": [matched.pk, unmatched.pk],
        }, follow=True)

        self.assertEqual(response.status_code, 200)
        messages = [str(m) for m in response.context["messages"]]
        self.assertTrue(any("Processed 2 transaction(s)" in m
                            for m in messages))

        matched.refresh_from_db()
        unmatched.refresh_from_db()
        untouched.refresh_from_db()
        self.assertTrue(matched.processed)
        self.assertTrue(unmatched.processed)
        self.assertFalse(untouched.processed)
        self.assertTrue(Payment.objects.get(transaction_id="QKX0000001")
                        .receipted)
