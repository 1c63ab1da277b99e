"""Salary component catalog and per-employee concept assignments."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_runs.models.base import Base, TimestampMixin


class SalaryComponent(Base, TimestampMixin):
    """Salary component definition (concepto).

    The three contribution flags drive how a line is accumulated. The type is
    stored as free text because the catalog is maintained elsewhere; the engine
    rejects anything other than EARNING or DEDUCTION when it reads it.
    """

    __tablename__ = "salary_component"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_remunerative: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    affects_employee_contributions: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    affects_employer_contributions: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="salary_component_company_code_unique"),
    )


class EmployeeFixedConcept(Base, TimestampMixin):
    """Recurring concept assigned to an employee over an effective range."""

    __tablename__ = "employee_fixed_concept"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    component_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("salary_component.id"),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("1"))
    unit_amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "effective_to IS NULL OR effective_to >= effective_from",
            name="employee_fixed_concept_dates_check",
        ),
    )

    component: Mapped[SalaryComponent] = relationship()

    def is_effective_during(self, period_start: date, period_end: date) -> bool:
        """Check if the assignment overlaps the period at all."""
        if self.effective_from > period_end:
            return False
        if self.effective_to is not None and self.effective_to < period_start:
            return False
        return True


class PayrollVariableConcept(Base, TimestampMixin):
    """One-off concept loaded for a specific period (overtime, bonus, fine)."""

    __tablename__ = "payroll_variable_concept"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll_period.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    component_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("salary_component.id"),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("1"))
    unit_amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="payroll_variable_concept_status_check",
        ),
    )

    component: Mapped[SalaryComponent] = relationship()
