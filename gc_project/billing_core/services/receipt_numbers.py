import secrets

from ..exceptions import StoreTransactionFailure
from ..models import Receipt

RECEIPT_PREFIX = "RCPT"
RECEIPT_DIGITS = 10
# collisions regenerate, at most this many times
MAX_ATTEMPTS = 5


def _random_receipt_number():
    digits = secrets.randbelow(10 ** RECEIPT_DIGITS)
    return f"{RECEIPT_PREFIX}{digits:0{RECEIPT_DIGITS}d}"


def generate_receipt_number(exists=None) -> str:
    """
    Return a receipt number not yet used in the store.
    `exists` (number -> bool) defaults to a lookup on Receipt.
    """
    if exists is None:
        def exists(number):
            return Receipt.objects.filter(receipt_number=number).exists()

    for _ in range(MAX_ATTEMPTS):
        number = _random_receipt_number()
        if not exists(number):
            return number
    raise StoreTransactionFailure(
        f"Could not generate a unique receipt number in {MAX_ATTEMPTS} attempts"
    )
