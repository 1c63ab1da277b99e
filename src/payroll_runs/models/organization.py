"""Employee directory and organization lookup models.

These tables are owned by the HR side of the system; the run engine only
reads them and copies what it needs into run item snapshots.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_runs.models.base import Base, TimestampMixin


class LaborUnion(Base, TimestampMixin):
    """Labor union (gremio) with its own categories and pay scales."""

    __tablename__ = "payroll_union"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class UnionCategory(Base, TimestampMixin):
    """Job category within a union."""

    __tablename__ = "union_category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    union_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll_union.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)

    union: Mapped[LaborUnion] = relationship()


class WorkSector(Base, TimestampMixin):
    """Company sector an employee is assigned to."""

    __tablename__ = "work_sector"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class Employee(Base, TimestampMixin):
    """Live employee record. Editable at any time by HR."""

    __tablename__ = "employee"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    base_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    union_category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("union_category.id"),
        nullable=True,
    )
    work_sector_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("work_sector.id"),
        nullable=True,
    )

    # Relationships
    category: Mapped[UnionCategory | None] = relationship()
    sector: Mapped[WorkSector | None] = relationship()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def union_id(self) -> int | None:
        """Union is derived from the employee's category."""
        return self.category.union_id if self.category is not None else None
