"""
capital_engines.equity -- Proportional ownership of a project.

Each active investment owns ``amount / total_raised`` of its project.  The
share is recomputed for every investment whenever the total changes, so a
new investor dilutes all existing ones.

Pure: zero I/O.  Shares are rounded half-up to nine decimal places, which
keeps their sum within 1e-6 of one for any realistic investor count.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Hashable, Mapping, TypeVar

from capital_engines.tracer import traced_engine

K = TypeVar("K", bound=Hashable)

EQUITY_PLACES = 9
_QUANTUM = Decimal(1).scaleb(-EQUITY_PLACES)


@traced_engine("equity_shares", "1.0", fingerprint_fields=("amounts", "total_raised"))
def compute_equity_shares(
    amounts: Mapping[K, Decimal],
    total_raised: Decimal,
) -> dict[K, Decimal]:
    """Map each key to ``amount / total_raised`` (all zero when total is zero)."""
    if total_raised <= 0:
        return {key: Decimal("0") for key in amounts}
    return {
        key: (amount / total_raised).quantize(_QUANTUM, rounding=ROUND_HALF_UP)
        for key, amount in amounts.items()
    }
