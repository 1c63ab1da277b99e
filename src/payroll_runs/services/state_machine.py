"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "DRAFT"
    CALCULATED = "CALCULATED"
    APPROVED = "APPROVED"
    PAID = "PAID"
    LOCKED = "LOCKED"
    VOIDED = "VOIDED"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Status only moves forward:
    - DRAFT → CALCULATED (run engine, once)
    - CALCULATED → APPROVED
    - APPROVED → PAID
    - PAID → LOCKED
    - DRAFT, CALCULATED, APPROVED → VOIDED
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.CALCULATED, PayrollRunStatus.VOIDED],
        PayrollRunStatus.CALCULATED: [PayrollRunStatus.APPROVED, PayrollRunStatus.VOIDED],
        PayrollRunStatus.APPROVED: [PayrollRunStatus.PAID, PayrollRunStatus.VOIDED],
        PayrollRunStatus.PAID: [PayrollRunStatus.LOCKED],
        PayrollRunStatus.LOCKED: [],  # Terminal state
        PayrollRunStatus.VOIDED: [],  # Terminal state
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

