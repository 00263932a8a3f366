"""Conversion between human-readable token amounts and integer base units.

NEAR amounts routinely carry 24 decimals, so everything here goes through
``Decimal`` with a wide context. Floats are never used.
"""

from decimal import ROUND_DOWN, Decimal, DecimalException, InvalidOperation, localcontext
from typing import Any, Union

from nearswap.errors import InvalidInputError

# Enough for 10^24 scaling of amounts up to ~10^50
AMOUNT_PRECISION = 96

DISPLAY_PLACES = 6

# Largest base-unit amount (in digits) that still formats exactly at DISPLAY_PLACES
MAX_AMOUNT_DIGITS = AMOUNT_PRECISION - DISPLAY_PLACES


def validate_decimals(value: Any, name: str = "decimals") -> int:
    """Return ``value`` as a non-negative int or raise InvalidInputError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"Invalid {name}: must be a non-negative integer")
    if value < 0:
        raise InvalidInputError(f"Invalid {name}: must be a non-negative integer")
    return value


def parse_amount(amount: Union[str, Decimal, int]) -> Decimal:
    """Parse a human amount, requiring a finite positive number."""
    if isinstance(amount, bool):
        raise InvalidInputError("Invalid amount")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError("Invalid amount")

    if not value.is_finite() or value <= 0:
        raise InvalidInputError("Invalid amount")
    return value


def to_base_units(amount: Union[str, Decimal, int], decimals: int) -> int:
    """Convert a human amount to base units, truncating toward zero.

    Args:
        amount: Decimal string such as "1.5"
        decimals: Token decimals

    Returns:
        Integer amount in the token's smallest unit

    Raises:
        InvalidInputError: Not a finite positive number, or too large to represent
    """
    decimals = validate_decimals(decimals)
    value = parse_amount(amount)

    if value.adjusted() + decimals >= MAX_AMOUNT_DIGITS:
        raise InvalidInputError("Amount is too large")

    try:
        with localcontext() as ctx:
            ctx.prec = AMOUNT_PRECISION
            scaled = value.scaleb(decimals)
            return int(scaled.to_integral_value(rounding=ROUND_DOWN))
    except DecimalException:
        raise InvalidInputError("Amount is too large")


def from_base_units(value: Union[int, str, Decimal], decimals: int) -> Decimal:
    """Convert base units back to a human amount (exact)."""
    decimals = validate_decimals(decimals)
    with localcontext() as ctx:
        ctx.prec = AMOUNT_PRECISION
        return Decimal(value).scaleb(-decimals)


def format_amount(value: Decimal, places: int = DISPLAY_PLACES) -> str:
    """Format a human amount with a fixed number of decimal places, truncating."""
    quantum = Decimal(1).scaleb(-places)
    try:
        with localcontext() as ctx:
            ctx.prec = AMOUNT_PRECISION
            return f"{value.quantize(quantum, rounding=ROUND_DOWN):f}"
    except InvalidOperation:
        raise InvalidInputError("Amount is too large")


def base_units_to_display(value: Union[int, str, Decimal], decimals: int) -> str:
    """Base units -> fixed 6-place display string."""
    return format_amount(from_base_units(value, decimals))


def coerce_base_units(raw: Any) -> int:
    """Best-effort parse of an upstream base-unit amount.

    Accepts ints, integer strings and decimal/exponent strings. Anything
    unparseable, negative or too large to display becomes 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw if 0 <= raw < 10**MAX_AMOUNT_DIGITS else 0
    try:
        with localcontext() as ctx:
            ctx.prec = AMOUNT_PRECISION
            value = Decimal(str(raw).strip())
            if not value.is_finite() or value.adjusted() >= MAX_AMOUNT_DIGITS:
                return 0
            return max(int(value.to_integral_value(rounding=ROUND_DOWN)), 0)
    except (InvalidOperation, ValueError):
        return 0
