"""Payroll period, run, run item and line models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_runs.models.base import Base, TimestampMixin


# ===== Periods =====


class PayrollPeriod(Base, TimestampMixin):
    """Payroll period. Opened and closed outside the run engine."""

    __tablename__ = "payroll_period"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    union_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("payroll_union.id"),
        nullable=True,
    )
    period_type: Mapped[str] = mapped_column(String, nullable=False, default="MONTHLY")
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    business_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint(
            "period_type IN ('QUINCENA_1', 'QUINCENA_2', 'MONTHLY')",
            name="payroll_period_type_check",
        ),
        CheckConstraint("period_end >= period_start", name="payroll_period_dates_check"),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_period_month_check"),
    )

    @property
    def days_in_period(self) -> int:
        return (self.period_end - self.period_start).days + 1


# ===== Runs & Immutable Results =====


class PayrollRun(Base, TimestampMixin):
    """One calculation attempt (corrida) for a period.

    Inserted as DRAFT with zero totals when a run number is reserved. Totals
    are only ever written as the fold of the run's items.
    """

    __tablename__ = "payroll_run"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll_period.id"),
        nullable=False,
    )
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    run_number: Mapped[int] = mapped_column(Integer, nullable=False)
    run_type: Mapped[str] = mapped_column(String, nullable=False, default="REGULAR")
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")

    total_gross: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_net: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_employer_cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    employee_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    calculated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    locked_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    void_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("period_id", "run_number", name="payroll_run_period_number_unique"),
        CheckConstraint(
            "run_type IN ('REGULAR', 'ADJUSTMENT', 'RETROACTIVE')",
            name="payroll_run_type_check",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'CALCULATED', 'APPROVED', 'PAID', 'LOCKED', 'VOIDED')",
            name="payroll_run_status_check",
        ),
        CheckConstraint("run_number >= 1", name="payroll_run_number_positive"),
    )

    # Relationships
    period: Mapped[PayrollPeriod] = relationship()
    items: Mapped[list[PayrollRunItem]] = relationship(
        back_populates="run",
        order_by="PayrollRunItem.employee_id",
    )


class PayrollRunItem(Base, TimestampMixin):
    """One employee's result within a run.

    The snapshot columns are copied from the employee directory at calculation
    time and never follow later edits to the employee record.
    """

    __tablename__ = "payroll_run_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll_run.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Snapshot
    employee_name: Mapped[str] = mapped_column(String, nullable=False)
    union_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    union_name: Mapped[str | None] = mapped_column(String, nullable=True)
    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category_name: Mapped[str | None] = mapped_column(String, nullable=True)
    sector_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sector_name: Mapped[str | None] = mapped_column(String, nullable=True)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)

    days_worked: Mapped[int] = mapped_column(Integer, nullable=False)
    days_in_period: Mapped[int] = mapped_column(Integer, nullable=False)
    prorate_factor: Mapped[Decimal] = mapped_column(Numeric(7, 6), nullable=False)

    gross_remunerative: Mapped[Decimal] = mapped_column(nullable=False)
    gross_total: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    advances_discounted: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    net_salary: Mapped[Decimal] = mapped_column(nullable=False)
    employer_cost: Mapped[Decimal] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("run_id", "employee_id", name="payroll_run_item_employee_unique"),
        CheckConstraint(
            "prorate_factor >= 0 AND prorate_factor <= 1",
            name="payroll_run_item_factor_range",
        ),
    )

    # Relationships
    run: Mapped[PayrollRun] = relationship(back_populates="items")
    lines: Mapped[list[PayrollRunItemLine]] = relationship(
        back_populates="item",
        order_by="PayrollRunItemLine.sort_order",
    )


class PayrollRunItemLine(Base, TimestampMixin):
    """One concept's contribution to a run item."""

    __tablename__ = "payroll_run_item_line"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll_run_item.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Null for calculated statutory lines
    component_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("salary_component.id"),
        nullable=True,
    )
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    unit_amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    base_amount: Mapped[Decimal] = mapped_column(nullable=False)
    calculated_amount: Mapped[Decimal] = mapped_column(nullable=False)
    final_amount: Mapped[Decimal] = mapped_column(nullable=False)
    formula: Mapped[str | None] = mapped_column(Text, nullable=True)
    line_metadata: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(
            "type IN ('EARNING', 'DEDUCTION')",
            name="payroll_run_item_line_type_check",
        ),
    )

    # Relationships
    item: Mapped[PayrollRunItem] = relationship(back_populates="lines")


class ImmutableRecordError(Exception):
    """Raised when a persisted run item or line is modified."""

    def __init__(self, entity_type: str, entity_id: int | None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} is immutable; issue a void or adjustment run instead"
        )


@event.listens_for(PayrollRunItem, "before_update")
@event.listens_for(PayrollRunItemLine, "before_update")
def _reject_result_update(mapper: Any, connection: Any, target: Any) -> None:
    raise ImmutableRecordError(type(target).__name__, target.id)


# ===== Audit =====


class AuditEvent(Base, TimestampMixin):
    """Audit trail entry."""

    __tablename__ = "audit_event"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    details_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
