# util/formatting.py
# Purpose: display formatting for the grid, matching the browser's he-IL output.
#   number:   "1,234"     negative: LRM + "-1,234"
#   currency: RLM + "1,234" + NBSP + RLM + shekel sign
#             negative: RLM + LRM + "-1,234" + NBSP + RLM + shekel sign

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

RLM = "\u200f"
LRM = "\u200e"
NBSP = "\u00a0"
SHEKEL = "\u20aa"


def _round_half_up(value) -> Decimal | None:
    """Round to a whole number, halves away from zero. None for NaN/garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    try:
        dec = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not dec.is_finite():
        return None
    # Keeps the sign of values that round to zero (-0.4 -> -0), like Intl.
    return dec.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _grouped(rounded: Decimal) -> str:
    digits = f"{int(abs(rounded)):,}"
    if rounded.is_signed():
        return f"{LRM}-{digits}"
    return digits


def format_number(number) -> str:
    """Grouped integer with no fraction digits, e.g. 3526 -> "3,526"."""
    rounded = _round_half_up(number)
    if rounded is None:
        return "NaN"
    return _grouped(rounded)


def format_currency(number) -> str:
    """Shekel amount with no fraction digits, e.g. 9500 -> "9,500" wrapped in bidi marks."""
    rounded = _round_half_up(number)
    text = "NaN" if rounded is None else _grouped(rounded)
    return f"{RLM}{text}{NBSP}{RLM}{SHEKEL}"
