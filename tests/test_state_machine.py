"""Tests for payroll run state machine."""

import pytest

from payroll_runs.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)


class TestPayrollRunStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that forward transitions are allowed."""
        assert PayrollRunStateMachine.can_transition("DRAFT", "CALCULATED") is True
        assert PayrollRunStateMachine.can_transition("CALCULATED", "APPROVED") is True
        assert PayrollRunStateMachine.can_transition("APPROVED", "PAID") is True
        assert PayrollRunStateMachine.can_transition("PAID", "LOCKED") is True

    def test_void_transitions(self):
        """Test that unpaid runs can be voided."""
        assert PayrollRunStateMachine.can_transition("DRAFT", "VOIDED") is True
        assert PayrollRunStateMachine.can_transition("CALCULATED", "VOIDED") is True
        assert PayrollRunStateMachine.can_transition("APPROVED", "VOIDED") is True

        # Money has moved
        assert PayrollRunStateMachine.can_transition("PAID", "VOIDED") is False
        assert PayrollRunStateMachine.can_transition("LOCKED", "VOIDED") is False

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip calculation
        assert PayrollRunStateMachine.can_transition("DRAFT", "APPROVED") is False

        # Can't go backwards
        assert PayrollRunStateMachine.can_transition("CALCULATED", "DRAFT") is False
        assert PayrollRunStateMachine.can_transition("PAID", "APPROVED") is False

        # Terminal states
        assert PayrollRunStateMachine.can_transition("VOIDED", "DRAFT") is False
        assert PayrollRunStateMachine.can_transition("LOCKED", "VOIDED") is False

    def test_enum_and_string_statuses(self):
        """Test enum members and plain strings are interchangeable."""
        assert PayrollRunStateMachine.can_transition(
            PayrollRunStatus.DRAFT, PayrollRunStatus.CALCULATED
        ) is True
        assert PayrollRunStateMachine.can_transition(PayrollRunStatus.DRAFT, "CALCULATED") is True

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition("DRAFT", "PAID")

        assert exc_info.value.from_status == "DRAFT"
        assert exc_info.value.to_status == "PAID"

