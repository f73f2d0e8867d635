import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # scheduled by CELERY_BEAT_SCHEDULE
def sweep_mobile_money_transactions(limit=None):
    # import services lazily to avoid loading models at module import time
    from .services import build_sms_sender, process_mobile_money_transactions

    counts = process_mobile_money_transactions(
        sender=build_sms_sender(), limit=limit)
    if counts.get("failed"):
        logger.warning("%d mobile-money transaction(s) left for retry",
                       counts["failed"])
    return counts


@shared_task
def send_monthly_bill_reminders():
    from .services import build_sms_sender, send_bill_reminders

    sent = send_bill_reminders(build_sms_sender())
    return {"sent": sent}
