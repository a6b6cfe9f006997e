"""
Decimal Utilities
finclinic/scoring/utils.py

Provides precision-safe decimal math for scoring calculations.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(
    value: Decimal,
    min_val: Decimal = Decimal("0"),
    max_val: Decimal = Decimal("100"),
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def mean(values: List[int]) -> Decimal:
    """
    Arithmetic mean of integer answers.

    Returns Decimal("0") for an empty list.
    """
    if not values:
        return Decimal("0")
    return (Decimal(sum(values)) / Decimal(len(values))).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )


def percentage(score: Decimal, scale: Decimal = Decimal("5")) -> Decimal:
    """
    Express a 0-scale score as a percentage.

    Formula: score / scale × 100, rounded to 2 places
    """
    if scale <= 0:
        return Decimal("0")
    return clamp((score / scale * Decimal("100")).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    ))
