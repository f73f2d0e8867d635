from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a DecimalField(max_digits=12, decimal_places=2) can hold
MAX_AMOUNT = Decimal("9999999999.99")


def to_amount(value) -> Decimal:
    """
    Parse a money amount (str, int, float or Decimal) into a 2dp Decimal.
    Raises InvalidAmount when the value is unparsable, not positive or too
    large to store.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"Invalid payment amount: {value!r}")
    try:
        # str() first so floats like 0.1 don't drag binary noise along
        amount = Decimal(str(value).strip().replace(",", ""))
        if not amount.is_finite():
            raise InvalidAmount(f"Invalid payment amount: {value!r}")
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:  # unparsable, or too many digits to quantize
        raise InvalidAmount(f"Invalid payment amount: {value!r}")

    if amount <= ZERO:
        raise InvalidAmount(f"Payment amount must be positive, got {amount}")
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"Payment amount {amount} exceeds {MAX_AMOUNT}")
    return amount


def format_kes(amount) -> str:
    # "1,250.00" -> whole shillings print without decimals ("1,250")
    amount = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"
