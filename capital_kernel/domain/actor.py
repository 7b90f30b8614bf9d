"""
Acting-user resolution (``capital_kernel.domain.actor``).

The identity/session provider is an external collaborator.  Whatever sits
in front of the engine binds the authenticated user id for the duration of
a call; the engine reads it back when it stamps ``created_by``.  With no
session bound, the fixed system sentinel is used.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Protocol

SYSTEM_ACTOR = "system"

_current_actor: ContextVar[str | None] = ContextVar("current_actor", default=None)


class ActorProvider(Protocol):
    def current_actor(self) -> str: ...


class ContextActorProvider:
    """Reads the actor bound with :func:`acting_as`, else the fallback."""

    def __init__(self, fallback: str = SYSTEM_ACTOR):
        self._fallback = fallback

    def current_actor(self) -> str:
        return _current_actor.get() or self._fallback


class FixedActorProvider:
    """Always returns the same actor.  Useful for scripts and tests."""

    def __init__(self, actor: str):
        self._actor = actor

    def current_actor(self) -> str:
        return self._actor


@contextmanager
def acting_as(actor_id: str | None) -> Iterator[None]:
    """Bind ``actor_id`` as the acting user for the enclosed block."""
    token = _current_actor.set(actor_id)
    try:
        yield
    finally:
        _current_actor.reset(token)
