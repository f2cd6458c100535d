"""
Numeric helpers for point and currency quantities.

Quantities are carried as Decimal so balances add and subtract exactly.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

from .errors import InvalidAmountError

Number = Union[int, float, str, Decimal]

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Number, label: str = "amount") -> Decimal:
    """Coerce user input into a finite Decimal.
    
    Floats go through str() so 0.1 stays 0.1 rather than its binary expansion.
    
    Raises:
        InvalidAmountError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Enter a numeric {label}.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Enter a numeric {label}.")
    if not amount.is_finite():
        raise InvalidAmountError(f"Enter a numeric {label}.")
    return amount


def round2(amount: Decimal) -> Decimal:
    """Round half up to 2 decimal places.

    Raises:
        InvalidAmountError: If the result needs more digits than the
            current decimal context carries
    """
    try:
        return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountError("Amount is too large.")


def format_usd(amount: Number) -> str:
    """Format a currency amount as $1,234.56."""
    value = to_decimal(amount)
    with localcontext() as ctx:
        # Enough digits for every integer digit plus the cents
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        value = round2(value)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
