"""
capital_config -- single public entrypoint for engine configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  It loads the packaged ``defaults.yaml`` (or an override path),
    validates it, and returns a frozen ``EngineConfig``.

Architecture position:
    Configuration layer.  Sits above ``capital_kernel`` and below
    ``capital_modules``.  The kernel never imports from here.

Failure modes:
    - ``FileNotFoundError`` -- override path does not exist.
    - ``ValueError`` -- schema constraint violations.

Audit relevance:
    Every successful call emits a ``CAPITAL_CONFIG_TRACE`` log record with
    the config id, version and checksum.
"""

from __future__ import annotations

from pathlib import Path

from capital_config.loader import load_yaml_file, parse_engine_config
from capital_config.schema import (
    ChartAccountDef,
    EngineConfig,
    LedgerConfig,
    ReportingConfig,
    ReturnsConfig,
)
from capital_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | None = None) -> EngineConfig:
    """Load, validate and return the engine configuration."""
    path = config_path or DEFAULT_CONFIG_PATH
    config = parse_engine_config(load_yaml_file(path))
    _logger.info(
        "CAPITAL_CONFIG_TRACE",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "chart_accounts": len(config.chart_of_accounts),
        },
    )
    return config


__all__ = [
    "ChartAccountDef",
    "EngineConfig",
    "LedgerConfig",
    "ReportingConfig",
    "ReturnsConfig",
    "get_active_config",
]
