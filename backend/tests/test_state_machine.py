# Overview: Pytest coverage for the car, rental and part state machines.

import pytest

from autocrm.services.state_machine import (
    CAR_MACHINE,
    RENTAL_MACHINE,
    PART_MACHINE,
    TransitionError,
    transition,
    apply_transition,
)
from autocrm.validation import ConflictError


class _Row:
    def __init__(self, status):
        self.status = status


class TestCarMachine:

    @pytest.mark.parametrize(
        "state,event,expected",
        [
            ("active", "rent", "rented"),
            ("rented", "return", "active"),
            ("active", "dismantle", "dismantled"),
        ],
    )
    def test_legal_transitions(self, state, event, expected):
        assert transition(CAR_MACHINE, state, event) == expected

    @pytest.mark.parametrize(
        "state,event",
        [
            ("rented", "rent"),
            ("rented", "dismantle"),
            ("dismantled", "rent"),
            ("dismantled", "dismantle"),
            ("dismantled", "return"),
            ("active", "return"),
        ],
    )
    def test_illegal_transitions_rejected(self, state, event):
        with pytest.raises(TransitionError):
            transition(CAR_MACHINE, state, event)

    def test_dismantled_is_terminal(self):
        assert CAR_MACHINE.is_terminal("dismantled")
        assert not CAR_MACHINE.is_terminal("active")
        assert CAR_MACHINE.events_from("active") == ["dismantle", "rent"]

    def test_unknown_state_rejected(self):
        with pytest.raises(TransitionError, match="Unknown car status"):
            transition(CAR_MACHINE, "sold", "rent")


class TestTerminalMachines:

    def test_rental_completes_once(self):
        assert transition(RENTAL_MACHINE, "active", "complete") == "completed"
        with pytest.raises(TransitionError):
            transition(RENTAL_MACHINE, "completed", "complete")

    def test_part_sells_once(self):
        assert transition(PART_MACHINE, "available", "sell") == "sold"
        with pytest.raises(TransitionError):
            transition(PART_MACHINE, "sold", "sell")


class TestApplyTransition:

    def test_updates_entity_status(self):
        row = _Row("active")
        assert apply_transition(CAR_MACHINE, row, "rent") == "rented"
        assert row.status == "rented"

    def test_rejection_leaves_status_untouched(self):
        row = _Row("dismantled")
        with pytest.raises(TransitionError):
            apply_transition(CAR_MACHINE, row, "rent")
        assert row.status == "dismantled"

    def test_custom_message(self):
        row = _Row("completed")
        with pytest.raises(TransitionError, match="Rental is already completed"):
            apply_transition(RENTAL_MACHINE, row, "complete", message="Rental is already completed")

    def test_transition_error_is_conflict(self):
        assert issubclass(TransitionError, ConflictError)
