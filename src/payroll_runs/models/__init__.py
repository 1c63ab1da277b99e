"""SQLAlchemy ORM models."""

from payroll_runs.models.base import Base, TimestampMixin
from payroll_runs.models.catalog import (
    EmployeeFixedConcept,
    PayrollVariableConcept,
    SalaryComponent,
)
from payroll_runs.models.organization import Employee, LaborUnion, UnionCategory, WorkSector
from payroll_runs.models.payroll import (
    AuditEvent,
    ImmutableRecordError,
    PayrollPeriod,
    PayrollRun,
    PayrollRunItem,
    PayrollRunItemLine,
)

__all__ = [
    "AuditEvent",
    "Base",
    "Employee",
    "EmployeeFixedConcept",
    "ImmutableRecordError",
    "LaborUnion",
    "PayrollPeriod",
    "PayrollRun",
    "PayrollRunItem",
    "PayrollRunItemLine",
    "PayrollVariableConcept",
    "SalaryComponent",
    "TimestampMixin",
    "UnionCategory",
    "WorkSector",
]
