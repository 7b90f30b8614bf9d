"""
Configuration Loader (``capital_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into the frozen
``capital_config.schema`` dataclasses.  Runtime callers go through
``capital_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Missing required keys -> ``KeyError`` propagates.
* Constraint violations -> ``ValueError`` from schema ``__post_init__``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from capital_config.schema import (
    ChartAccountDef,
    EngineConfig,
    LedgerConfig,
    ReportingConfig,
    ReturnsConfig,
)
from capital_kernel.models.account import AccountType


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the raw configuration mapping."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _decimal(value: Any) -> Decimal:
    # YAML floats would already have lost precision; money is quoted in YAML
    return Decimal(str(value))


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    return LedgerConfig(
        balance_tolerance=_decimal(data.get("balance_tolerance", "0.01")),
        money_decimal_places=int(data.get("money_decimal_places", 2)),
        entry_number_width=int(data.get("entry_number_width", 6)),
        system_actor=str(data.get("system_actor", "system")),
    )


def parse_returns(data: dict[str, Any]) -> ReturnsConfig:
    return ReturnsConfig(
        irr_guess=_decimal(data.get("irr_guess", "0.1")),
        irr_max_iterations=int(data.get("irr_max_iterations", 100)),
        irr_tolerance=_decimal(data.get("irr_tolerance", "1e-8")),
        default_discount_rate=_decimal(data.get("default_discount_rate", "0.1")),
    )


def parse_reporting(data: dict[str, Any]) -> ReportingConfig:
    return ReportingConfig(
        include_zero_balances=bool(data.get("include_zero_balances", True)),
    )


def parse_chart_account(data: dict[str, Any]) -> ChartAccountDef:
    return ChartAccountDef(
        code=str(data["code"]),
        name=str(data["name"]),
        account_type=AccountType(data["type"]),
        parent_code=str(data["parent"]) if data.get("parent") is not None else None,
    )


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        ledger=parse_ledger(data.get("ledger") or {}),
        returns=parse_returns(data.get("returns") or {}),
        reporting=parse_reporting(data.get("reporting") or {}),
        chart_of_accounts=tuple(
            parse_chart_account(item) for item in data.get("chart_of_accounts") or ()
        ),
        checksum=compute_checksum(data),
    )
