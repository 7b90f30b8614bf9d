"""
Small value helpers shared by the domain modules.

Zero I/O.  Enum coercion turns free-form status/type strings arriving at the
boundary into the canonical stored value, raising the engine's validation
error instead of a bare ValueError.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from capital_kernel.exceptions import InvalidRequestError

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: type[E], value: E | str, field: str) -> E:
    """Return ``enum_cls(value)`` or raise InvalidRequestError naming ``field``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise InvalidRequestError(field, f"'{value}' is not one of: {allowed}") from None
