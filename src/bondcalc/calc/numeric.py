"""Lenient numeric input parsing for live calculators."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Inputs beyond the range of a binary double count as non-finite.
MAX_ADJUSTED_EXPONENT = 308
MIN_ADJUSTED_EXPONENT = -324


def parse_numeric_input(value: Any) -> Decimal:
    """Convert raw user input to a Decimal, defaulting to 0.

    Accepts Decimal, int, float and text. Empty, unparseable or non-finite
    input (including "NaN" and "Infinity") yields 0 rather than an error.
    Magnitudes above 1e308 are treated as non-finite and yield 0; magnitudes
    below 1e-324 underflow to 0.

    Thousands separators are dropped before parsing, so "1,000" reads as 1000
    rather than stopping at the comma.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(repr(value))
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return ZERO
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return ZERO
    if not parsed.is_finite() or parsed.is_zero():
        return ZERO
    if not MIN_ADJUSTED_EXPONENT <= parsed.adjusted() <= MAX_ADJUSTED_EXPONENT:
        return ZERO
    return parsed
