"""
Module: capital_kernel.db.types
Responsibility: Annotated type aliases and helpers for financial-grade values.
    Centralizes precision and rounding so that every model, engine and
    service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by every layer.

Invariants enforced:
    - No floats for money.  ``money_from_str`` refuses float input and
      ``round_money`` is the one sanctioned rounding function.

Failure modes:
    - TypeError when a float is passed where money is expected.
    - decimal.InvalidOperation on a non-numeric string.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

ShortCode = Annotated[str, String(50)]
LongText = Annotated[str, String(4000)]

MONEY_DECIMAL_PLACES = 9
EQUITY_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0")


def money_from_str(value: str | int | Decimal) -> Decimal:
    """
    Parse a money value crossing the boundary as a decimal string.

    Integers and Decimals are accepted unchanged.  Floats are rejected:
    a binary float has already lost the exact cents.

    Raises:
        TypeError: If value is a float or bool.
        decimal.InvalidOperation: If the string is not a number.
    """
    if isinstance(value, (float, bool)):
        raise TypeError(f"Money must be a decimal string, got {type(value).__name__}")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value).strip())


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for financial values.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def within_tolerance(left: Decimal, right: Decimal, tolerance: Decimal) -> bool:
    """True when two amounts differ by no more than ``tolerance``."""
    return abs(left - right) <= tolerance
