from django.apps import AppConfig


class BillingCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "billing_core"
    verbose_name = "Billing & collections"
