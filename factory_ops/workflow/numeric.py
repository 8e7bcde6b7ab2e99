"""
Clamp values to the precision/scale of the store's numeric columns before writing.
"""
from __future__ import annotations

import math
from typing import Optional, Tuple, Union

Number = Union[int, float]

INT4_MAX = 2147483647
INT4_MIN = -2147483648

# (precision, scale) of the store's numeric columns
PERCENTAGE_COLUMN: Tuple[int, int] = (7, 2)
WEIGHT_COLUMN: Tuple[int, int] = (12, 3)


def _missing(value: Optional[Number]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _max_for(precision: int, scale: int) -> float:
    return 10 ** (precision - scale) - 10 ** (-scale)


# PUBLIC_INTERFACE
def clamp_numeric(value: Optional[Number], precision: int, scale: int) -> float:
    """
    Clamp a value into the range of numeric(precision, scale) and round to scale.

    Example: clamp_numeric(1500.5, 5, 2) == 999.99. None and NaN become 0.
    """
    if _missing(value):
        return 0
    limit = _max_for(precision, scale)
    clamped = max(-limit, min(limit, float(value)))
    return round(clamped, scale)


def clamp_percentage(value: Optional[Number]) -> float:
    return clamp_numeric(value, *PERCENTAGE_COLUMN)


def clamp_weight(value: Optional[Number]) -> float:
    return clamp_numeric(value, *WEIGHT_COLUMN)


def clamp_integer(value: Optional[Number]) -> int:
    if _missing(value):
        return 0
    return max(INT4_MIN, min(INT4_MAX, int(round(value))))


def would_overflow(value: Optional[Number], precision: int, scale: int) -> bool:
    """True when the value does not fit numeric(precision, scale); None and NaN do not fit."""
    if _missing(value):
        return True
    return abs(value) > _max_for(precision, scale)
