"""Number formatting for receipt text: money, quantities, Arabic-Indic digits."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

_CENTS = Decimal("0.01")
_ARABIC_INDIC = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


def to_arabic_indic(text: str) -> str:
    """Replace ASCII digits 0-9 with Arabic-Indic digits; other chars unchanged."""
    return text.translate(_ARABIC_INDIC)


def _as_float(value: Any) -> float:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a number: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Not a number: {value!r}") from e


def format_money(value: Any, arabic_digits: bool = False) -> str:
    """Format amount with exactly two decimals (``3.5`` -> ``"3.50"``).

    Exact binary ties round half away from zero (``0.125`` -> ``"0.13"``);
    values like ``1.005`` that are stored just below the tie round down.
    Raises ValueError for non-numeric input.
    """
    number = _as_float(value)
    if not math.isfinite(number):
        raise ValueError(f"Not a finite amount: {value!r}")
    cents = Decimal(number).quantize(_CENTS, rounding=ROUND_HALF_UP)
    text = f"{cents:.2f}"
    return to_arabic_indic(text) if arabic_digits else text


def format_number(value: Any, arabic_digits: bool = False) -> str:
    """Format quantity / rate without a forced fraction (``2.0`` -> ``"2"``)."""
    number = _as_float(value)
    text = str(int(number)) if number.is_integer() else repr(number)
    return to_arabic_indic(text) if arabic_digits else text


def line_total(qty: Any, price: Any) -> float:
    """Row total, always recomputed from qty and unit price."""
    return _as_float(qty) * _as_float(price)
