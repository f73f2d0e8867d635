class SettlementError(Exception):
    """Base for every failure a settlement can report to its caller."""
    status_code = 500


class NotFound(SettlementError):
    """Raised when the customer or payment being settled does not exist."""
    status_code = 404


class AlreadySettled(SettlementError):
    """Raised when a payment has already been receipted."""
    status_code = 400


class InvalidAmount(SettlementError):
    """Raised for non-positive or unparsable payment amounts."""
    status_code = 400


class PaymentMismatch(SettlementError):
    """Raised when a payment belongs to another customer or amount differs."""
    status_code = 400


class InvalidPaymentMode(SettlementError):
    """Raised for a mode of payment other than CASH, MPESA or BANK."""
    status_code = 400


class StoreTransactionFailure(SettlementError):
    """Raised when the settlement transaction could not be committed."""
    status_code = 500


class NotificationFailure(Exception):
    """Raised when an SMS is rejected or cannot be delivered.
    Never a settlement failure: callers log it and move on."""
    pass
