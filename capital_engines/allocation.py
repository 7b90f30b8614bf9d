"""
capital_engines.allocation -- Splitting totals across holders.

- ``pro_rata_split``: a distribution total split by equity share.
- ``per_share_amounts``: a capital call's per-share amount applied to each
  holding.

Each amount is rounded to cents independently, so the parts may differ from
the total by a few cents when shares do not divide evenly.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Hashable, Mapping, TypeVar

from capital_engines.tracer import traced_engine
from capital_kernel.db.types import round_money

K = TypeVar("K", bound=Hashable)


@traced_engine("pro_rata_split", "1.0", fingerprint_fields=("total", "weights"))
def pro_rata_split(
    total: Decimal,
    weights: Mapping[K, Decimal],
    decimal_places: int = 2,
) -> dict[K, Decimal]:
    """``total * weight`` per key, rounded to ``decimal_places``."""
    return {
        key: round_money(total * weight, decimal_places)
        for key, weight in weights.items()
    }


@traced_engine("per_share_amounts", "1.0", fingerprint_fields=("holdings", "amount_per_share"))
def per_share_amounts(
    holdings: Mapping[K, int],
    amount_per_share: Decimal,
    decimal_places: int = 2,
) -> dict[K, Decimal]:
    """``shares * amount_per_share`` per key, rounded to ``decimal_places``."""
    return {
        key: round_money(Decimal(shares) * amount_per_share, decimal_places)
        for key, shares in holdings.items()
    }
