from django.contrib import admin

from billing_core.models import Customer, Invoice

# ---------- Inline ----------


class InvoiceInline(admin.TabularInline):
    """Show a customer's invoices on the Customer page (read-only)"""

    model = Invoice
    extra = 0  # don’t show “empty” rows by default
    fields = ("invoice_number", "invoice_amount", "amount_paid", "status",
              "created_at")
    # amounts move only through settlement, protects the audit trail
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


# Register `Customer` model
@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "first_name",
        "last_name",
        "phone_number",
        "status",
        "garbage_collection_day",
        "monthly_charge",
        "closing_balance",
    )
    list_filter = ("status", "garbage_collection_day")
    search_fields = ("first_name", "last_name", "phone_number", "email")
    # Balance is owned by settlement and billing
    readonly_fields = ("closing_balance", "created_at")
    inlines = [InvoiceInline]


# Register `Invoice` model
@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "invoice_number",
        "customer",
        "invoice_amount",
        "amount_paid",
        "status",
        "created_at",
    )
    list_filter = ("status", "created_at")
    search_fields = ("invoice_number", "customer__phone_number")
    readonly_fields = ("amount_paid", "status")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("customer")
