"""
Module: trade_kernel.db.types
Responsibility: Conversion helpers between user-entered values and the column
    types of trading contracts (USD amounts, tonnages, percentages, ids).
    Centralizes parsing and display so every model and service agrees.
Architecture position: Kernel > DB.  May be imported by domain/ and modules.
    MUST NOT import from outer layers.

Invariants enforced:
    CRITICAL: No floats.  Tonnages, moisture percentages, deductions and USD
    amounts use Decimal with explicit precision.

Failure modes:
    - ValueError on a non-numeric or non-finite value passed to
      decimal_from_input().
    - ValueError on a malformed id passed to uuid_from_input().
"""

from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID


def decimal_from_input(value: Any) -> Decimal | None:
    """
    Convert a user-entered numeric value to Decimal.

    Blank input means "not entered yet" and maps to None; it is not an error.
    The Decimal keeps the exact digits the user typed, so "1.2" stays "1.2"
    and "90" stays "90" when rendered back into formula text.

    Args:
        value: None, Decimal, int, or a numeric string.

    Returns:
        Decimal, or None for blank input.

    Raises:
        ValueError: If value is a non-blank, non-numeric string, a float, or
            not finite (NaN, sNaN, Infinity).
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Not a finite value: {value!r}")
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        raise ValueError(f"Float values are not accepted, pass a string: {value!r}")
    text = str(value).strip()
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite value: {value!r}")
    return result


def format_decimal(value: Decimal) -> str:
    """
    Render a Decimal for display without scientific notation.

    Values read back from a Numeric(38, 9) column carry trailing zeros
    ("90.000000000"); those are stripped so stored and freshly-entered values
    render identically.
    """
    if value == value.to_integral_value():
        return format(value.to_integral_value(), "f")
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def uuid_from_input(value: Any) -> UUID | None:
    """
    Convert a selector value (UUID or its string form) to UUID.

    An empty selection maps to None.

    Raises:
        ValueError: If value is not a valid UUID string.
    """
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    return UUID(str(value))
