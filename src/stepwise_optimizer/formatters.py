"""Display helpers for presentation layers. The solvers return raw floats and never call these."""

import math
import numbers
from typing import Any, List, Sequence

from .schemas import EPSILON

DECIMAL_PLACES = 2


def format_number(value: float, decimals: int = DECIMAL_PLACES) -> str:
    """
    Near-zero values render as "0"; everything else is rounded to
    `decimals` places with integer digits grouped by spaces.

        format_number(1234.567)    -> "1 234.57"
        format_number(0.0000001)   -> "0"
        format_number(1000000, 0)  -> "1 000 000"
    """

    if abs(value) < EPSILON:
        return "0"

    rounded = f"{value:.{decimals}f}"
    integer_part, _, fraction_part = rounded.partition(".")
    sign = "-" if integer_part.startswith("-") else ""
    grouped = f"{int(integer_part.lstrip('-')):,}".replace(",", " ")

    if fraction_part:
        return f"{sign}{grouped}.{fraction_part}"
    return f"{sign}{grouped}"


def is_valid_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        if not value.strip():
            return False
        try:
            value = float(value)
        except ValueError:
            return False
    if not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def format_tableau(tableau: Sequence[Sequence[float]], decimals: int = DECIMAL_PLACES) -> List[List[str]]:
    return [[format_number(cell, decimals) for cell in row] for row in tableau]
