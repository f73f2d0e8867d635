from django.contrib import admin, messages

from billing_core.services import build_sms_sender, ingest_transaction

# ---------- Admin actions ----------


@admin.action(description="Process selected mobile-money transactions")
# Re-run ingestion for callbacks an operator has fixed up or reviewed
def process_selected_transactions(
    modeladmin,  # `ModelAdmin` class for RawMobileMoneyTransaction
    request,  # HTTP request object
    queryset,  # record what admin selected from list view
):
    """
    Each transaction goes through the normal ingestion path in its own
    database transaction, so one failure never blocks the rest.
    """
    candidates = queryset.filter(processed=False).order_by("created_at", "pk")
    total = candidates.count()
    sender = build_sms_sender()

    outcomes = {}
    for raw in candidates:
        outcome = ingest_transaction(raw.pk, sender=sender)
        outcomes[outcome] = outcomes.get(outcome, 0) + 1
        if outcome == "failed":
            modeladmin.message_user(
                request,
                f"Could not process transaction {raw.trans_id}; "
                "it stays pending.",
                level=messages.ERROR,
            )

    # Final summary message
    summary = ", ".join(f"{k}: {v}" for k, v in sorted(outcomes.items()))
    modeladmin.message_user(
        request,
        f"Processed {total} transaction(s). {summary}",
        level=messages.SUCCESS,
    )
