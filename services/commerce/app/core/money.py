"""Helpers for monetary arithmetic: every amount is a Decimal rounded to cents."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str, None]


def to_money(value: Number) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() evita herdar o erro de representação binária do float
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, percent: Number) -> Decimal:
    return to_money(to_money(amount) * Decimal(str(percent)) / Decimal("100"))
