"""
Decimal-string boundary conversion.

Prices, confidences and index values are stored as decimal strings. They
are parsed to ``float`` here, immediately before arithmetic, and formatted
back to strings only when a snapshot or metric is persisted.

A value that cannot be parsed raises ``MalformedDecimalError`` instead of
becoming zero, which would silently drag weighted means down.
"""

from __future__ import annotations

import math
from typing import Optional, Union

DecimalLike = Union[str, int, float]


class MalformedDecimalError(ValueError):
    """Raised when a stored decimal field cannot be parsed to a finite number."""


def parse_decimal(value: DecimalLike, field: str = "value") -> float:
    """Parse a decimal string (or number) into a finite float.

    Args:
        value: Decimal string such as ``"1923.4500"``, or an int/float.
        field: Field name used in the error message.

    Returns:
        The parsed float.

    Raises:
        MalformedDecimalError: If ``value`` is empty, unparseable, NaN or infinite.
    """
    if isinstance(value, bool):
        raise MalformedDecimalError(f"{field}: boolean is not a decimal ({value!r}).")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise MalformedDecimalError(f"{field}: empty decimal string.")
        try:
            parsed = float(text)
        except ValueError:
            raise MalformedDecimalError(f"{field}: cannot parse {value!r} as a decimal.") from None
    else:
        parsed = float(value)
    if not math.isfinite(parsed):
        raise MalformedDecimalError(f"{field}: non-finite value {value!r}.")
    return parsed


def parse_optional_decimal(
    value: Optional[DecimalLike],
    default: float,
    field: str = "value",
) -> float:
    """Like ``parse_decimal`` but returns ``default`` for ``None`` or ``""``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return parse_decimal(value, field)


def format_decimal(value: float, places: int = 2) -> str:
    """Format a float as a decimal string for persistence.

    ``format_decimal(50.0) == "50.0"`` and ``format_decimal(57.126) == "57.13"``.
    """
    return str(round_half_up(value, places))


def round_half_up(value: float, places: int = 2) -> float:
    """Round with halves going up: ``floor(x * 10**p + 0.5) / 10**p``.

    Built-in ``round()`` rounds halves to even; scores here never do.
    """
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))
