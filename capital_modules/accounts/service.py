"""
capital_modules.accounts.service
================================

Responsibility:
    Maintains the chart of accounts: create, rename, deactivate, and seed
    the configured default chart.

Invariants enforced:
    - Account codes are unique.  Checked up front and again on flush, where
      the store's IntegrityError becomes DuplicateAccountCodeError.
    - ``normal_balance`` defaults from the account type (debit for assets
      and expenses, credit otherwise).
    - ``current_balance`` is never written here; only LedgerPostingService
      moves balances.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from capital_config import EngineConfig
from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    AccountNotFoundError,
    DuplicateAccountCodeError,
    InvalidRequestError,
)
from capital_kernel.logging_config import get_logger
from capital_kernel.models.account import (
    DEFAULT_NORMAL_BALANCE,
    Account,
    AccountType,
    NormalBalance,
)

logger = get_logger("modules.accounts.service")


class AccountService:
    """Chart of accounts maintenance."""

    def __init__(self, session: Session, actor_provider: ActorProvider | None = None):
        self._session = session
        self._actors = actor_provider or ContextActorProvider()

    def get_account(self, account_id: UUID) -> Account:
        account = self._session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def get_by_code(self, code: str) -> Account:
        account = self._session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(code)
        return account

    def list_accounts(
        self,
        account_type: AccountType | str | None = None,
        active_only: bool = False,
    ) -> list[Account]:
        query = select(Account).order_by(Account.code)
        if account_type is not None:
            account_type = coerce_enum(AccountType, account_type, "type")
            query = query.where(Account.account_type == account_type.value)
        if active_only:
            query = query.where(Account.is_active.is_(True))
        return list(self._session.execute(query).scalars().all())

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        normal_balance: NormalBalance | str | None = None,
        parent_id: UUID | None = None,
        description: str | None = None,
    ) -> Account:
        account_type = coerce_enum(AccountType, account_type, "type")
        if normal_balance is None:
            normal_balance = DEFAULT_NORMAL_BALANCE[account_type]
        else:
            normal_balance = coerce_enum(NormalBalance, normal_balance, "normal_balance")

        code = (code or "").strip()
        if not code:
            raise InvalidRequestError("code", "must be non-empty")
        if not name or not name.strip():
            raise InvalidRequestError("name", "must be non-empty")
        if parent_id is not None:
            self.get_account(parent_id)

        existing = self._session.execute(
            select(Account.id).where(Account.code == code)
        ).first()
        if existing is not None:
            raise DuplicateAccountCodeError(code)

        account = Account(
            code=code,
            name=name.strip(),
            description=description,
            account_type=account_type.value,
            normal_balance=normal_balance.value,
            parent_id=parent_id,
            created_by=self._actors.current_actor(),
        )
        self._session.add(account)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateAccountCodeError(code) from exc

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "account_code": code,
                "account_type": account_type.value,
            },
        )
        return account

    def update_account(
        self,
        account_id: UUID,
        name: str | None = None,
        description: str | None = None,
        parent_id: UUID | None = None,
    ) -> Account:
        account = self.get_account(account_id)
        if name is not None:
            if not name.strip():
                raise InvalidRequestError("name", "must be non-empty")
            account.name = name.strip()
        if description is not None:
            account.description = description
        if parent_id is not None:
            if parent_id == account_id:
                raise InvalidRequestError("parent_id", "an account cannot be its own parent")
            self.get_account(parent_id)
            account.parent_id = parent_id
        self._session.flush()
        return account

    def deactivate(self, account_id: UUID) -> Account:
        """Hide an account from new postings' reports.  Its history stays."""
        account = self.get_account(account_id)
        account.is_active = False
        self._session.flush()
        logger.info("account_deactivated", extra={"account_code": account.code})
        return account

    def seed_default_chart(self, config: EngineConfig) -> list[Account]:
        """
        Create every account of ``config.chart_of_accounts`` whose code does
        not exist yet.  Returns the accounts created.  Idempotent.
        """
        by_code = {
            account.code: account
            for account in self._session.execute(select(Account)).scalars().all()
        }
        created = []
        for definition in config.chart_of_accounts:
            if definition.code in by_code:
                continue
            parent = by_code.get(definition.parent_code) if definition.parent_code else None
            account = self.create_account(
                code=definition.code,
                name=definition.name,
                account_type=definition.account_type,
                parent_id=parent.id if parent is not None else None,
            )
            by_code[definition.code] = account
            created.append(account)

        logger.info(
            "chart_of_accounts_seeded",
            extra={"config_id": config.config_id, "created_count": len(created)},
        )
        return created
