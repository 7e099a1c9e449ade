"""
Canonical workflow types (``stock_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for document state machines.  Modules declare their
lifecycle once as a ``Workflow`` so that the set of legal transitions is
data, not scattered ``if`` statements.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states end the lifecycle; a transition may leave one only when
  it carries a guard that says so.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the aggregate does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``derived=True`` marks transitions that are not requested directly but
    follow from recomputing state after a quantity update.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    derived: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} references unknown state"
                )
            if t.from_state in self.terminal_states and t.guard is None:
                raise ValueError(
                    f"Workflow {self.name}: unguarded transition {t.action} "
                    f"leaves terminal state {t.from_state}"
                )

    def allowed_from(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` may be performed, in declaration order."""
        seen: list[str] = []
        for t in self.transitions:
            if t.action == action and t.from_state not in seen:
                seen.append(t.from_state)
        return tuple(seen)

    def targets(self, from_state: str, action: str) -> tuple[str, ...]:
        """States ``action`` can lead to from ``from_state``."""
        return tuple(
            t.to_state
            for t in self.transitions
            if t.from_state == from_state and t.action == action
        )

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states
