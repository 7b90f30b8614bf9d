"""
Module: capital_kernel.selectors.base
Responsibility: Base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/ and models/.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - Session ownership: the caller owns the session and its transaction.
"""

from sqlalchemy.orm import Session


class BaseSelector:
    """Holds the caller's session for subclass queries."""

    def __init__(self, session: Session):
        self.session = session
