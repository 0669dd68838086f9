"""Decimal parsing helpers for monetary and quantity inputs."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from bizdesk.exceptions import InvalidAmountError, BusinessLogicError

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def quantize(value: Decimal) -> Decimal:
    """Round to cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value, field: str = 'amount', allow_zero: bool = True) -> Decimal:
    """
    Parse a monetary value (str, int, Decimal) into a cent-quantized Decimal.

    Floats are converted through ``str`` so 0.1 stays 0.1.

    Raises:
        InvalidAmountError: if empty, not a number, negative, or zero when not allowed.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidAmountError(f'{field} is required')
    if isinstance(value, bool):
        raise InvalidAmountError(f'{field} must be a number')

    try:
        if isinstance(value, str):
            amount = Decimal(value.strip().replace(',', ''))
        else:
            amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f'{field} must be a number')

    if not amount.is_finite():
        raise InvalidAmountError(f'{field} must be a number')
    if amount < 0:
        raise InvalidAmountError(f'{field} cannot be negative')
    if not allow_zero and amount == 0:
        raise InvalidAmountError(f'{field} must be greater than 0')

    return quantize(amount)


def parse_quantity(value, field: str = 'quantity') -> int:
    """Parse a strictly positive whole quantity (boxes)."""
    if isinstance(value, bool):
        raise BusinessLogicError(f'{field} must be a whole number')
    try:
        as_decimal = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise BusinessLogicError(f'{field} must be a whole number')
    if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
        raise BusinessLogicError(f'{field} must be a whole number')
    quantity = int(as_decimal)
    if quantity <= 0:
        raise BusinessLogicError(f'{field} must be greater than 0')
    return quantity
