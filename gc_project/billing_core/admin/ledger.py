from django.contrib import admin

from billing_core.models import (AuditLog, Payment, RawMobileMoneyTransaction,
                                 Receipt, SmsMessage)

from .actions import process_selected_transactions
from .readonly import ReadOnlyAdmin


@admin.register(Receipt)
class ReceiptAdmin(ReadOnlyAdmin):
    list_display = ("receipt_number", "customer", "invoice", "payment",
                    "amount", "mode_of_payment", "paid_by", "created_at")
    list_filter = ("mode_of_payment", "created_at")
    search_fields = ("receipt_number", "transaction_code",
                     "customer__phone_number")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("customer", "invoice", "payment")


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdmin):
    list_display = ("id", "transaction_id", "customer", "amount",
                    "mode_of_payment", "receipted", "ref", "created_at")
    # Unattached payments (receipted=False, no customer) are the work queue
    list_filter = ("receipted", "mode_of_payment")
    search_fields = ("transaction_id", "ref", "first_name")


@admin.register(RawMobileMoneyTransaction)
class RawMobileMoneyTransactionAdmin(ReadOnlyAdmin):
    list_display = ("trans_id", "trans_amount", "bill_ref_number", "msisdn",
                    "first_name", "processed", "created_at")
    list_filter = ("processed",)
    search_fields = ("trans_id", "bill_ref_number", "msisdn")

    # The one action allowed on this otherwise read-only ledger
    def get_actions(self, request):
        action = self.get_action(process_selected_transactions)
        return {action[1]: action}


@admin.register(SmsMessage)
class SmsMessageAdmin(ReadOnlyAdmin):
    list_display = ("client_sms_id", "customer", "mobile", "status",
                    "created_at")
    list_filter = ("status",)
    search_fields = ("mobile", "client_sms_id")


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ("id", "action", "object_type", "object_id", "created_at")
    search_fields = ("object_type", "object_id")
    list_filter = ("action", "created_at")
