"""
Module: capital_engines
Responsibility:
    Pure calculation engines for the capital ledger: returns (IRR, NPV,
    ROI), equity shares and pro-rata splits.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  May import
    capital_kernel.db.types and capital_kernel.logging_config only.
    MUST NOT import capital_modules.

Invariants enforced:
    - Engines never read the clock or the database.
    - Decimal-only arithmetic.
    - Every call is traced with ``@traced_engine``.
"""

from capital_engines.allocation import per_share_amounts, pro_rata_split
from capital_engines.equity import compute_equity_shares
from capital_engines.returns import (
    IrrResult,
    irr,
    npv,
    project_cash_flow_series,
    roi,
)

__all__ = [
    "IrrResult",
    "compute_equity_shares",
    "irr",
    "npv",
    "per_share_amounts",
    "pro_rata_split",
    "project_cash_flow_series",
    "roi",
]
