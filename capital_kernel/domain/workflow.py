"""
Canonical workflow types (``capital_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for lifecycle state machines (projects, investments,
capital calls, allocations, payments).  Services ask the workflow for the
transition matching an action before they change a status column, so a
status never moves along an edge the workflow does not declare.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  The only outward
import is the exception hierarchy.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from capital_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.  The owning service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``posts_entry=True`` marks transitions that may post a journal entry
    (when the relevant accounts are configured).
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    posts_entry: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an entity lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state '{self.initial_state}' not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} "
                    f"references unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state '{t.from_state}' "
                    f"has outgoing transition {t.action}"
                )

    def allowed_actions(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def find(self, state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t
        return None

    def require(self, state: str, action: str, entity_id: Any) -> Transition:
        """Return the transition for ``action`` from ``state`` or raise.

        Raises:
            InvalidTransitionError: No such transition is declared.
        """
        transition = self.find(state, action)
        if transition is None:
            raise InvalidTransitionError(self.name, entity_id, state, action)
        return transition
