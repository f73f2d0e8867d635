from django.db import models

# ---------------------------------------------
# Query helpers shared by services and reports
# ---------------------------------------------


class CustomerQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status="ACTIVE")

    def for_collection_day(self, day):
        # Days are stored upper-case ("MONDAY")
        return self.active().filter(garbage_collection_day=day.upper())


class InvoiceQuerySet(models.QuerySet):
    # Only these statuses can still receive money
    OUTSTANDING = ("UNPAID", "PPAID")

    def outstanding(self):
        return self.filter(status__in=self.OUTSTANDING)

    def outstanding_for(self, customer):
        # Oldest debt first, id breaks ties between same-instant invoices
        return self.outstanding().filter(customer=customer).order_by(
            "created_at", "pk")

    def latest_for(self, customer):
        return self.filter(customer=customer).order_by(
            "-created_at", "-pk").first()


class RawTransactionQuerySet(models.QuerySet):
    def unprocessed(self):
        return self.filter(processed=False).order_by("created_at", "pk")
