"""Decimal rounding helpers shared by scoring and history stats."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]


def round_half_up(value: Number, places: int) -> float:
    """
    Round to `places` decimals, ties away from zero (0.805 -> 0.81, -0.125 -> -0.13).

    Python's round() uses banker's rounding and works on the binary float, so
    round(0.805, 2) gives 0.8. Floats are converted through str() to keep the
    decimal value the caller wrote.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    quantum = Decimal(1).scaleb(-places)
    return float(value.quantize(quantum, rounding=ROUND_HALF_UP))
