"""Database layer for the capital kernel."""

from capital_kernel.db.base import Base, TrackedBase, UUIDString
from capital_kernel.db.engine import (
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
