"""Fixed-point currency helpers"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Union

from pydantic import PlainSerializer

CENT = Decimal("0.01")

# Decimal in Python, plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def to_money(value: Union[Decimal, float, int, str, None]) -> Decimal:
    """Normalize a store or input value to a 2-decimal Decimal"""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(value: Decimal) -> int:
    """Dollars to cents for the payment gateway"""
    return int((to_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))
