"""
Configuration schema (``capital_config.schema``).

Frozen dataclasses describing the engine configuration.  Each validates its
own constraints in ``__post_init__`` and raises ``ValueError`` on violation.
All numeric thresholds are ``Decimal``, never ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from capital_kernel.models.account import AccountType


@dataclass(frozen=True)
class LedgerConfig:
    balance_tolerance: Decimal = Decimal("0.01")
    money_decimal_places: int = 2
    entry_number_width: int = 6
    system_actor: str = "system"

    def __post_init__(self) -> None:
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")
        if not 0 <= self.money_decimal_places <= 9:
            raise ValueError("money_decimal_places must be between 0 and 9")
        if self.entry_number_width < 1:
            raise ValueError("entry_number_width must be positive")
        if not self.system_actor:
            raise ValueError("system_actor must be non-empty")


@dataclass(frozen=True)
class ReturnsConfig:
    irr_guess: Decimal = Decimal("0.1")
    irr_max_iterations: int = 100
    irr_tolerance: Decimal = Decimal("1e-8")
    default_discount_rate: Decimal = Decimal("0.1")

    def __post_init__(self) -> None:
        if self.irr_max_iterations < 1:
            raise ValueError("irr_max_iterations must be at least 1")
        if self.irr_tolerance <= 0:
            raise ValueError("irr_tolerance must be positive")
        if self.default_discount_rate <= Decimal("-1"):
            raise ValueError("default_discount_rate must be greater than -1")


@dataclass(frozen=True)
class ReportingConfig:
    include_zero_balances: bool = True


@dataclass(frozen=True)
class ChartAccountDef:
    code: str
    name: str
    account_type: AccountType
    parent_code: str | None = None


@dataclass(frozen=True)
class EngineConfig:
    """The single runtime configuration artifact."""

    config_id: str
    version: int
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    returns: ReturnsConfig = field(default_factory=ReturnsConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    chart_of_accounts: tuple[ChartAccountDef, ...] = ()
    checksum: str = ""

    def __post_init__(self) -> None:
        codes = [a.code for a in self.chart_of_accounts]
        if len(codes) != len(set(codes)):
            raise ValueError("chart_of_accounts contains duplicate codes")
        known = set(codes)
        for account in self.chart_of_accounts:
            if account.parent_code is not None and account.parent_code not in known:
                raise ValueError(
                    f"chart account {account.code} references unknown parent "
                    f"{account.parent_code}"
                )
