"""
Request payload parsing for the procedure boundary.

Payloads are plain dicts as decoded from the transport.  Money arrives as
decimal strings and is refused as binary floats; dates arrive as ISO-8601
strings; ids as UUID strings.  Every failure raises InvalidRequestError
naming the offending field, so a malformed request surfaces as BAD_REQUEST.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping
from uuid import UUID

from capital_kernel.db.types import money_from_str
from capital_kernel.exceptions import InvalidRequestError

_MISSING = object()


def _raw(payload: Mapping[str, Any], field: str, required: bool) -> Any:
    value = payload.get(field, _MISSING)
    if value is _MISSING or value is None:
        if required:
            raise InvalidRequestError(field, "is required")
        return None
    return value


def parse_money(payload: Mapping[str, Any], field: str, required: bool = True) -> Decimal | None:
    value = _raw(payload, field, required)
    if value is None:
        return None
    try:
        amount = money_from_str(value)
    except TypeError:
        raise InvalidRequestError(field, "must be a decimal string, not a float") from None
    except InvalidOperation:
        raise InvalidRequestError(field, f"'{value}' is not a decimal number") from None
    if not amount.is_finite():
        raise InvalidRequestError(field, "must be a finite number")
    return amount


def parse_date(payload: Mapping[str, Any], field: str, required: bool = True) -> date | None:
    value = _raw(payload, field, required)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        # Accept full timestamps as well as plain dates
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        raise InvalidRequestError(field, f"'{value}' is not an ISO-8601 date") from None


def parse_uuid(payload: Mapping[str, Any], field: str, required: bool = True) -> UUID | None:
    value = _raw(payload, field, required)
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidRequestError(field, f"'{value}' is not a UUID") from None


def parse_int(payload: Mapping[str, Any], field: str, required: bool = True) -> int | None:
    value = _raw(payload, field, required)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidRequestError(field, "must be an integer")
    try:
        return int(value)
    except ValueError:
        raise InvalidRequestError(field, f"'{value}' is not an integer") from None


def parse_str(payload: Mapping[str, Any], field: str, required: bool = True) -> str | None:
    value = _raw(payload, field, required)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRequestError(field, "must be a string")
    return value


def parse_bool(payload: Mapping[str, Any], field: str, default: bool) -> bool:
    value = payload.get(field)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidRequestError(field, "must be a boolean")
    return value


def parse_money_list(payload: Mapping[str, Any], field: str) -> list[Decimal]:
    values = _raw(payload, field, True)
    if not isinstance(values, (list, tuple)):
        raise InvalidRequestError(field, "must be a list of decimal strings")
    return [parse_money({field: v}, field) for v in values]
