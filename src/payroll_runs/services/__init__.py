"""Payroll run services."""

from payroll_runs.services.directory import PayrollDirectory, PeriodRecord
from payroll_runs.services.run_service import (
    ConcurrentRunNumberConflictError,
    PartialCommitFailureError,
    PayrollRunError,
    PayrollRunService,
    PeriodClosedError,
    PeriodNotFoundError,
    RunComputationError,
    RunPhase,
    RunType,
)
from payroll_runs.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)

__all__ = [
    "ConcurrentRunNumberConflictError",
    "InvalidTransitionError",
    "PartialCommitFailureError",
    "PayrollDirectory",
    "PayrollRunError",
    "PayrollRunService",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
    "PeriodClosedError",
    "PeriodNotFoundError",
    "PeriodRecord",
    "RunComputationError",
    "RunPhase",
    "RunType",
]
