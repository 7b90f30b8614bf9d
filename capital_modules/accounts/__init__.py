"""Accounts module: chart of accounts maintenance."""

from capital_modules.accounts.models import AccountInfo, account_to_dto
from capital_modules.accounts.service import AccountService

__all__ = ["AccountInfo", "AccountService", "account_to_dto"]
