import logging
import uuid
from decimal import Decimal, InvalidOperation

import requests
from django.conf import settings
from django.utils import timezone
from tenacity import (retry, retry_if_exception_type, stop_after_attempt,
                      wait_exponential)

from ..exceptions import NotificationFailure
from ..models import Customer, Invoice, SmsMessage
from .amounts import format_kes

logger = logging.getLogger(__name__)


# ----------------------------
# Phone number normalization
# ----------------------------
def normalize_phone_number(phone, country_code="254") -> str:
    """
    Canonical international form without '+':
    '0712345678', '+254712345678', '254712345678', '712345678'
    all become '254712345678'.
    """
    if not isinstance(phone, str):
        return ""
    digits = "".join(phone.split())
    if digits.startswith("+"):
        digits = digits[1:]
    if digits.startswith(country_code):
        return digits
    if digits.startswith("0"):
        digits = digits[1:]
    if not digits:
        return ""
    return f"{country_code}{digits}"


# ----------------------------
# Senders
# ----------------------------
class SmsSender:
    """Anything able to deliver a text. `send` returns True when accepted."""

    country_code = "254"

    def send(self, phone_number: str, text: str) -> bool:
        raise NotImplementedError

    def send_bulk(self, messages: list) -> bool:
        # messages: [{"clientsmsid": ..., "mobile": ..., "message": ...}]
        return all(self.send(m["mobile"], m["message"]) for m in messages)

    def balance(self) -> Decimal:
        raise NotImplementedError


_transient = retry_if_exception_type((requests.ConnectionError, requests.Timeout))


class HttpSmsSender(SmsSender):
    """SMS gateway client (single, bulk and balance endpoints)."""

    def __init__(self, *, endpoint, bulk_endpoint="", balance_url="",
                 api_key="", partner_id="", shortcode="",
                 country_code="254", timeout=10, session=None):
        self.endpoint = endpoint
        self.bulk_endpoint = bulk_endpoint
        self.balance_url = balance_url
        self.api_key = api_key
        self.partner_id = partner_id
        self.shortcode = shortcode
        self.country_code = country_code
        self.timeout = timeout
        self.session = session or requests.Session()

    @retry(retry=_transient, stop=stop_after_attempt(3),
           wait=wait_exponential(multiplier=0.5, max=4), reraise=True)
    def _post(self, url, payload):
        return self.session.post(url, json=payload, timeout=self.timeout)

    @staticmethod
    def _accepted(response) -> bool:
        if not response.ok:
            return False
        try:
            body = response.json()
        except ValueError:
            return True  # 2xx without JSON body
        if not isinstance(body, dict):
            return True
        if "success" in body:
            return bool(body["success"])
        responses = body.get("responses")
        if responses:
            return all(
                isinstance(r, dict) and str(r.get("response-code")) == "200"
                for r in responses)
        return True

    def _credentials(self):
        return {
            "apikey": self.api_key,
            "partnerID": self.partner_id,
            "shortcode": self.shortcode,
        }

    def send(self, phone_number, text):
        mobile = normalize_phone_number(phone_number, self.country_code)
        if not mobile:
            raise NotificationFailure(f"Invalid phone number: {phone_number!r}")
        payload = {**self._credentials(), "message": text, "mobile": mobile}
        try:
            response = self._post(self.endpoint, payload)
        except requests.RequestException as exc:
            raise NotificationFailure(f"SMS gateway unreachable: {exc}") from exc
        return self._accepted(response)

    def send_bulk(self, messages):
        smslist = [
            {**self._credentials(), "pass_type": "plain", **m}
            for m in messages
        ]
        try:
            response = self._post(
                self.bulk_endpoint, {"count": len(smslist), "smslist": smslist})
        except requests.RequestException as exc:
            raise NotificationFailure(f"SMS gateway unreachable: {exc}") from exc
        return self._accepted(response)

    def balance(self):
        payload = {"apikey": self.api_key, "partnerID": self.partner_id}
        try:
            response = self._post(self.balance_url, payload)
            response.raise_for_status()
            return Decimal(str(response.json()["balance"]))
        except (requests.RequestException, ValueError, KeyError,
                InvalidOperation) as exc:
            raise NotificationFailure(
                f"Failed to retrieve SMS balance: {exc}") from exc


def build_sms_sender() -> HttpSmsSender:
    """Build a gateway client from settings (one per worker / request)."""
    return HttpSmsSender(
        endpoint=settings.SMS_ENDPOINT,
        bulk_endpoint=settings.BULK_SMS_ENDPOINT,
        balance_url=settings.SMS_BALANCE_URL,
        api_key=settings.SMS_API_KEY,
        partner_id=settings.PARTNER_ID,
        shortcode=settings.SHORTCODE,
        country_code=settings.SMS_COUNTRY_CODE,
        timeout=settings.SMS_TIMEOUT,
    )


# ----------------------------
# Message workflows
# ----------------------------
def send_sms(phone_number, message, sender, customer=None) -> SmsMessage:
    """
    Send one text and keep a record of it.
    Raises NotificationFailure when the gateway rejects it.
    """
    mobile = normalize_phone_number(phone_number, sender.country_code)
    sms = SmsMessage.objects.create(
        client_sms_id=uuid.uuid4().hex,
        customer=customer,
        mobile=mobile,
        message=message,
    )
    try:
        accepted = sender.send(mobile, message)
    except Exception:  # any sender error leaves a failed record behind
        sms.status = "failed"
        sms.save(update_fields=["status"])
        raise

    sms.status = "sent" if accepted else "failed"
    sms.save(update_fields=["status"])
    if not accepted:
        raise NotificationFailure(f"SMS to {mobile} rejected by gateway")
    logger.info("SMS %s sent to %s", sms.client_sms_id, mobile)
    return sms


def balance_message(closing_balance) -> str:
    if closing_balance < 0:
        return ("Your current balance is an overpayment of "
                f"KES {format_kes(abs(closing_balance))}")
    return f"Your current balance is KES {format_kes(closing_balance)}"


def settlement_message(customer, amount, closing_balance) -> str:
    return (
        f"Dear {customer.first_name}, payment of KES {format_kes(amount)} "
        f"received successfully. {balance_message(closing_balance)}. "
        f"Help us serve you better by using Paybill No: "
        f"{settings.PAYBILL_NUMBER}, your phone number as the account "
        f"number. Customer support number: {settings.SUPPORT_PHONE}."
    )


def _send_recorded_bulk(entries, sender):
    """entries: list of (customer, message). Returns number sent."""
    records = []
    for customer, message in entries:
        records.append(SmsMessage.objects.create(
            client_sms_id=uuid.uuid4().hex,
            customer=customer,
            mobile=normalize_phone_number(
                customer.phone_number, sender.country_code),
            message=message,
        ))

    if not records:
        return 0

    accepted = sender.send_bulk([
        {"clientsmsid": r.client_sms_id, "mobile": r.mobile,
         "message": r.message}
        for r in records
    ])
    ids = [r.pk for r in records]
    SmsMessage.objects.filter(pk__in=ids).update(
        status="sent" if accepted else "failed")
    if not accepted:
        raise NotificationFailure(
            f"Bulk SMS of {len(records)} messages rejected by gateway")
    logger.info("Sent %d bulk SMS messages", len(records))
    return len(records)


def send_bill_reminders(sender, today=None) -> int:
    """
    Text every active customer their latest bill and total balance.
    Refuses to start unless the SMS balance covers two texts per customer.
    """
    today = today or timezone.localdate()
    month = today.strftime("%B")

    customers = list(Customer.objects.active().order_by("pk"))
    available = sender.balance()
    if available < len(customers) * 2:
        raise NotificationFailure(
            f"Insufficient SMS balance ({available}) for "
            f"{len(customers)} customers"
        )

    entries = []
    for customer in customers:
        latest = Invoice.objects.latest_for(customer)
        if latest is None:
            continue
        bill = latest.invoice_amount
        total = customer.closing_balance
        message = (
            f"Dear {customer.full_name}, your {month} bill is "
            f"{format_kes(bill)}, your previous balance is "
            f"{format_kes(total - bill)}, and your total balance is "
            f"{format_kes(total)}. Help us serve you better by always "
            f"paying on time. Paybill No: {settings.PAYBILL_NUMBER}, your "
            f"phone number as the account number. Customer support: "
            f"{settings.SUPPORT_PHONE}."
        )
        entries.append((customer, message))

    if not entries:
        logger.info("No active customers with invoices to send SMS.")
    return _send_recorded_bulk(entries, sender)


def send_to_collection_day(day, message, sender) -> int:
    """Send the same text to every active customer collected on `day`."""
    customers = Customer.objects.for_collection_day(day).order_by("pk")
    return _send_recorded_bulk([(c, message) for c in customers], sender)
