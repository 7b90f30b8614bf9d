"""Chart-of-accounts value objects."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from capital_kernel.models.account import Account


@dataclass(frozen=True)
class AccountInfo:
    id: UUID
    code: str
    name: str
    account_type: str
    normal_balance: str
    current_balance: Decimal
    is_active: bool
    parent_id: UUID | None = None
    description: str | None = None


def account_to_dto(account: Account) -> AccountInfo:
    return AccountInfo(
        id=account.id,
        code=account.code,
        name=account.name,
        account_type=_plain(account.account_type),
        normal_balance=_plain(account.normal_balance),
        current_balance=account.current_balance,
        is_active=account.is_active,
        parent_id=account.parent_id,
        description=account.description,
    )


def _plain(value) -> str:
    return getattr(value, "value", value)
