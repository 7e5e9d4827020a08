# Overview: Explicit finite-state machines for car, rental and part status.

"""
AutoCRM Entity State Machines

================================================================================
PURPOSE: One transition table per entity type, consulted by every lifecycle
manager before a status column is written.
================================================================================

CAR:
    active  --rent-->      rented
    rented  --return-->    active
    active  --dismantle--> dismantled   (terminal)

RENTAL:
    active  --complete-->  completed    (terminal)

PART:
    available --sell-->    sold         (terminal)

RULES:
1. Status columns are never assigned directly; services call apply_transition().
2. Any (state, event) pair missing from the table is rejected with TransitionError.
3. Terminal states have no outgoing edges, so a second completion/sale/dismantle
   is rejected the same way as any other illegal move.
4. A rented car cannot be dismantled (no "dismantle" edge out of "rented").
"""

from __future__ import annotations

from dataclasses import dataclass

from autocrm.validation import ConflictError


class TransitionError(ConflictError):
    """
    Raised when an event is not allowed in the entity's current state.

    This is a domain error (409), not a technical error.
    """

    def __init__(self, machine: str, state: str, event: str, message: str | None = None):
        self.machine = machine
        self.state = state
        self.event = event
        super().__init__(message or f"Cannot {event} {machine}: current status is '{state}'")


@dataclass(frozen=True)
class StateMachine:
    name: str
    states: frozenset
    transitions: dict  # {(state, event): new_state}

    def can(self, state: str, event: str) -> bool:
        return (state, event) in self.transitions

    def next_state(self, state: str, event: str) -> str:
        if state not in self.states:
            raise TransitionError(self.name, state, event, f"Unknown {self.name} status '{state}'")
        try:
            return self.transitions[(state, event)]
        except KeyError:
            raise TransitionError(self.name, state, event)

    def events_from(self, state: str) -> list[str]:
        return sorted(event for (src, event) in self.transitions if src == state)

    def is_terminal(self, state: str) -> bool:
        return not self.events_from(state)


CAR_MACHINE = StateMachine(
    name="car",
    states=frozenset({"active", "rented", "dismantled"}),
    transitions={
        ("active", "rent"): "rented",
        ("rented", "return"): "active",
        ("active", "dismantle"): "dismantled",
    },
)

RENTAL_MACHINE = StateMachine(
    name="rental",
    states=frozenset({"active", "completed"}),
    transitions={
        ("active", "complete"): "completed",
    },
)

PART_MACHINE = StateMachine(
    name="part",
    states=frozenset({"available", "sold"}),
    transitions={
        ("available", "sell"): "sold",
    },
)


def transition(machine: StateMachine, current_state: str, event: str) -> str:
    """(currentState, event) -> newState, or raise TransitionError."""
    return machine.next_state(current_state, event)


def apply_transition(machine: StateMachine, entity, event: str, *, message: str | None = None) -> str:
    """
    Move entity.status along the machine and return the new state.

    Args:
        machine: CAR_MACHINE / RENTAL_MACHINE / PART_MACHINE
        entity: ORM row with a `status` attribute
        event: transition event name
        message: optional caller-facing error message on rejection

    Raises:
        TransitionError: if the event is not legal from entity.status
    """
    current = entity.status
    try:
        new_state = machine.next_state(current, event)
    except TransitionError as exc:
        if message:
            raise TransitionError(machine.name, current, event, message) from exc
        raise
    entity.status = new_state
    return new_state
