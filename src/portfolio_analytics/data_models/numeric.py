"""Rounding helpers shared by the output models.

Values are carried at full float precision through the computations and
rounded half-up to two decimals only when serialised to JSON.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


def round_half_up(value: Optional[float], places: int = 2) -> Optional[float]:
    """Round a float half-up (0.125 -> 0.13), passing ``None`` through."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))
