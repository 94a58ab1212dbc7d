from __future__ import annotations

import math
import numbers
from typing import Any, Optional

NAN = float("nan")


def to_number(raw: Any) -> float:
    """Coerce a raw cell value into a float, returning NaN instead of raising.

    Numbers pass through unchanged. Text is trimmed and its first comma is read as the
    decimal separator, so "40,4168" and "40.4168" parse to the same value.
    """

    if raw is None or isinstance(raw, bool):
        return NAN
    if isinstance(raw, numbers.Real):
        try:
            return float(raw)
        except (TypeError, ValueError, OverflowError):
            return NAN
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return NAN
        # Digit separators are not part of a plain decimal literal.
        if "_" in text:
            return NAN
        try:
            return float(text.replace(",", ".", 1))
        except ValueError:
            return NAN
    return NAN


def is_finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def to_optional_text(value: Any) -> Optional[str]:
    """Render a cell as display text; integral floats drop their trailing `.0`."""

    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    text = str(value).strip()
    return text or None
