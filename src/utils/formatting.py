"""Number formatting for ledger values and statement previews."""

from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")


def to_money(value: Number) -> Decimal:
    """
    Round to two decimals the way printf-style "%.2f" does.

    Floats are rounded from their exact binary value, so 0.075 (stored as
    0.07499999...) gives 0.07.
    """
    if isinstance(value, Decimal):
        return value.quantize(CENT)
    return Decimal(f"{value:.2f}")


def format_with_underscores(value: Number) -> str:
    """
    Group the integer part in thousands with underscores.

    >>> format_with_underscores(1500000)
    '1_500_000'
    >>> format_with_underscores(Decimal("2500000.50"))
    '2_500_000.50'
    """
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    sign = "-" if number < 0 else ""
    number = abs(number)

    if number == number.to_integral_value():
        return f"{sign}{int(number):_}"

    whole, _, fraction = f"{number:f}".partition(".")
    return f"{sign}{int(whole):_}.{fraction}"


def format_plain(value: Number) -> str:
    """Whole numbers without a trailing ".0" (600000.0 -> "600000")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "to_money",
    "format_plain",
    "format_with_underscores",
]
