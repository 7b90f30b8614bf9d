"""
Module: capital_kernel.models.sequence
Responsibility: Named counter rows backing entry-number allocation.
Architecture position: Kernel > Models.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from capital_kernel.db.base import Base


class SequenceCounter(Base):
    """
    One row per named sequence (e.g. ``entry_number:INV``).

    Row-level locking on this row serializes concurrent allocations.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
