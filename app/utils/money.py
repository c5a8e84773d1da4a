"""
Money helpers.

Every monetary value in the system is a ``Decimal`` quantized to cents.
Floats never enter pricing or fee computation.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')

Number = Union[int, float, Decimal, str]


def to_money(value: Number) -> Decimal:
    """Convert to a cent-quantized Decimal (half-up)."""
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'Valor monetário inválido: {value!r}')


def percent_of(amount: Decimal, percentage: Number) -> Decimal:
    """``amount * percentage / 100`` rounded to cents."""
    return to_money(Decimal(amount) * Decimal(str(percentage)) / HUNDRED)


def money_br(value: Union[Number, None]) -> str:
    """
    Format an amount Brazilian style with exactly 2 decimals.

    Examples:
        money_br(1500) -> "1.500,00"
        money_br(Decimal('10.78')) -> "10,78"
        money_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = to_money(value)
    except ValueError:
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    integer_part, decimal_part = f"{num:.2f}".split(".")
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = '.'.join(groups)[::-1]

    return f"{sign}{integer_formatted},{decimal_part}"
