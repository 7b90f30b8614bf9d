"""Tests for configuration loading and validation (capital_config)."""

from __future__ import annotations

from decimal import Decimal

import pytest
import yaml

from capital_config import get_active_config
from capital_config.loader import compute_checksum, parse_engine_config
from capital_config.schema import LedgerConfig, ReturnsConfig
from capital_kernel.models.account import AccountType


class TestDefaults:

    def test_packaged_defaults_load(self):
        config = get_active_config()

        assert config.config_id == "capital-defaults"
        assert config.ledger.money_decimal_places == 2
        assert config.ledger.entry_number_width == 6
        assert config.ledger.system_actor == "system"
        assert config.returns.irr_tolerance == Decimal("1e-8")
        assert config.returns.irr_max_iterations == 100

    def test_default_chart_covers_every_type(self):
        types = {a.account_type for a in get_active_config().chart_of_accounts}
        assert types == set(AccountType)

    def test_checksum_stable(self):
        assert get_active_config().checksum == get_active_config().checksum

    def test_trace_logged(self, captured_logs):
        get_active_config()
        (trace,) = [r for r in captured_logs() if r["event"] == "CAPITAL_CONFIG_TRACE"]
        assert trace["config_id"] == "capital-defaults"
        assert len(trace["checksum"]) == 64


class TestOverrides:

    def test_override_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text(yaml.safe_dump({
            "config_id": "fund-2",
            "version": 3,
            "ledger": {"money_decimal_places": 4, "system_actor": "batch"},
            "chart_of_accounts": [{"code": "1000", "name": "Cash", "type": "asset"}],
        }))

        config = get_active_config(path)

        assert config.config_id == "fund-2"
        assert config.ledger.money_decimal_places == 4
        assert config.ledger.system_actor == "batch"
        assert config.returns == ReturnsConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            parse_engine_config({"version": 1})


class TestValidation:

    def test_duplicate_chart_codes(self):
        with pytest.raises(ValueError, match="duplicate"):
            parse_engine_config({
                "config_id": "x", "version": 1,
                "chart_of_accounts": [
                    {"code": "1000", "name": "Cash", "type": "asset"},
                    {"code": "1000", "name": "Bank", "type": "asset"},
                ],
            })

    def test_unknown_parent(self):
        with pytest.raises(ValueError, match="unknown parent"):
            parse_engine_config({
                "config_id": "x", "version": 1,
                "chart_of_accounts": [
                    {"code": "6100", "name": "Fees", "type": "expense", "parent": "6000"},
                ],
            })

    def test_unknown_account_type(self):
        with pytest.raises(ValueError):
            parse_engine_config({
                "config_id": "x", "version": 1,
                "chart_of_accounts": [{"code": "1", "name": "X", "type": "contra"}],
            })

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"balance_tolerance": Decimal("-0.01")},
            {"money_decimal_places": 10},
            {"entry_number_width": 0},
            {"system_actor": ""},
        ],
    )
    def test_ledger_constraints(self, kwargs):
        with pytest.raises(ValueError):
            LedgerConfig(**kwargs)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"irr_max_iterations": 0},
            {"irr_tolerance": Decimal("0")},
            {"default_discount_rate": Decimal("-1")},
        ],
    )
    def test_returns_constraints(self, kwargs):
        with pytest.raises(ValueError):
            ReturnsConfig(**kwargs)

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
