import json
import secrets
from functools import wraps

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .exceptions import SettlementError
from .services import build_sms_sender, settle


def _payload(request):
    # Accept JSON bodies as well as form posts
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return None
        # a JSON list or scalar is as unusable as broken JSON
        return data if isinstance(data, dict) else None
    return request.POST


def _error(message, status):
    return JsonResponse({"ok": False, "error": message}, status=status)


def api_key_required(view):
    """
    Machine clients authenticate with an `X-Api-Key` header matching
    BILLING_API_KEY. No cookies are involved, so CSRF checks are off.
    """
    @csrf_exempt
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        supplied = request.headers.get("X-Api-Key", "")
        if not supplied:
            return _error("Not authenticated.", 401)
        expected = settings.BILLING_API_KEY
        if not expected or not secrets.compare_digest(
                supplied.encode(), expected.encode()):
            return _error("Invalid API key.", 403)
        return view(request, *args, **kwargs)
    return wrapper


def _run_settlement(**kwargs):
    # call the service and map its typed failures to HTTP statuses
    try:
        result = settle(sender=build_sms_sender(), **kwargs)
    except SettlementError as e:
        return _error(str(e), e.status_code)
    except ValidationError as e:  # model guard tripped on bad input
        return _error("; ".join(e.messages), 400)
    return JsonResponse({"ok": True, **result.as_dict()}, status=201)


@api_key_required
@require_POST
def manual_receipt_view(request):
    """Receipt a cash/bank payment handed in at the office."""
    data = _payload(request)
    if data is None:
        return _error("Malformed JSON body.", 400)

    required = ("customer_id", "amount", "mode_of_payment", "paid_by")
    missing = [name for name in required if not data.get(name)]
    if missing:
        return _error(f"Missing required fields: {', '.join(missing)}.", 400)

    return _run_settlement(
        customer_id=data["customer_id"],
        amount=data["amount"],
        mode_of_payment=data["mode_of_payment"],
        paid_by=data["paid_by"],
    )


@api_key_required
@require_POST
def settle_payment_view(request, payment_id):
    """Settle an existing payment, e.g. an unattached mobile-money one."""
    data = _payload(request)
    if data is None:
        return _error("Malformed JSON body.", 400)
    if not data.get("customer_id"):
        return _error("Missing required fields: customer_id.", 400)

    return _run_settlement(
        customer_id=data["customer_id"],
        amount=data.get("amount") or None,
        mode_of_payment=data.get("mode_of_payment") or None,
        payment_id=payment_id,
        paid_by=data.get("paid_by", ""),
    )
