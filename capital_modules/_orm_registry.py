"""
Module ORM Registry (``capital_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
contains its table before tables are created, and create the schema
together with the entry-number counters for the well-known source types.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``capital_modules``
packages and from ``capital_kernel``.  MUST NOT be imported by
``capital_kernel``.

Usage
-----
Entrypoints and ``tests/conftest.py`` call ``create_all_tables()``.
"""

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from capital_kernel.logging_config import get_logger

logger = get_logger("modules.orm_registry")


def import_all_orm_models() -> None:
    """Import kernel models and every ``capital_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    # Kernel tables first (accounts, journal, counters)
    import capital_kernel.models  # noqa: F401
    # fmt: off
    import capital_modules.investment.orm  # noqa: F401
    import capital_modules.membership.orm  # noqa: F401
    import capital_modules.shareholders.orm  # noqa: F401
    # fmt: on


def create_all_tables(engine: Engine | None = None) -> None:
    """Create every table, then seed the entry-number counters.

    Preconditions:
        ``engine`` is given, or the engine was initialized via
        ``init_engine_from_url()``.
    Postconditions:
        All tables exist and a zeroed counter row exists for each prefix in
        ``KNOWN_PREFIXES`` and ``DOCUMENT_PREFIXES``.
    """
    from capital_kernel.db.base import Base
    from capital_kernel.db.engine import get_engine
    from capital_kernel.services.entry_numbering import (
        DOCUMENT_PREFIXES,
        KNOWN_PREFIXES,
        EntryNumberGenerator,
    )

    engine = engine or get_engine()
    import_all_orm_models()
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        EntryNumberGenerator(session).initialize(KNOWN_PREFIXES + DOCUMENT_PREFIXES)
        session.commit()

    logger.info(
        "schema_created",
        extra={
            "tables": len(Base.metadata.tables),
            "counters": len(KNOWN_PREFIXES) + len(DOCUMENT_PREFIXES),
        },
    )


def drop_all_tables(engine: Engine | None = None) -> None:
    """Drop every table.  Use with caution -- primarily for testing."""
    from capital_kernel.db.base import Base
    from capital_kernel.db.engine import get_engine

    import_all_orm_models()
    Base.metadata.drop_all(engine or get_engine())
