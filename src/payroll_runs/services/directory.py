"""Read-side access to periods, employees and concept assignments.

Every reader returns plain frozen dataclasses so that per-employee
calculation never touches the session.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payroll_runs.calculators.types import (
    ComponentInfo,
    ConceptInput,
    ContributionFlags,
    EmployeeInputs,
    EmployeeRecord,
    LineOrigin,
    PeriodWindow,
)
from payroll_runs.models import (
    Employee,
    EmployeeFixedConcept,
    PayrollPeriod,
    PayrollVariableConcept,
    SalaryComponent,
    UnionCategory,
)


@dataclass(frozen=True)
class PeriodRecord:
    """Period attributes the run engine needs."""

    period_id: int
    company_id: int
    union_id: int | None
    period_type: str
    year: int
    month: int
    period_start: date
    period_end: date
    business_days: int
    is_closed: bool

    @property
    def window(self) -> PeriodWindow:
        return PeriodWindow(self.period_id, self.period_start, self.period_end)


def _component_info(component: SalaryComponent) -> ComponentInfo:
    return ComponentInfo(
        component_id=component.id,
        code=component.code,
        name=component.name,
        type=component.type,
        sort_order=component.sort_order,
        flags=ContributionFlags(
            is_remunerative=component.is_remunerative,
            affects_employee_contributions=component.affects_employee_contributions,
            affects_employer_contributions=component.affects_employer_contributions,
        ),
    )


def _employee_record(employee: Employee) -> EmployeeRecord:
    category = employee.category
    union = category.union if category is not None else None
    sector = employee.sector
    return EmployeeRecord(
        employee_id=employee.id,
        employee_name=employee.full_name,
        hire_date=employee.hire_date,
        termination_date=employee.termination_date,
        base_salary=employee.base_salary,
        union_id=union.id if union is not None else None,
        union_name=union.name if union is not None else None,
        category_id=category.id if category is not None else None,
        category_name=category.name if category is not None else None,
        sector_id=sector.id if sector is not None else None,
        sector_name=sector.name if sector is not None else None,
    )


class PayrollDirectory:
    """SQLAlchemy-backed readers for the run engine's collaborators."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_period(self, period_id: int) -> PeriodRecord | None:
        period = await self.session.get(PayrollPeriod, period_id)
        if period is None:
            return None
        return PeriodRecord(
            period_id=period.id,
            company_id=period.company_id,
            union_id=period.union_id,
            period_type=period.period_type,
            year=period.year,
            month=period.month,
            period_start=period.period_start,
            period_end=period.period_end,
            business_days=period.business_days,
            is_closed=period.is_closed,
        )

    async def list_active_employees(
        self, company_id: int, union_id: int | None = None
    ) -> list[EmployeeRecord]:
        """Active employees of a company, optionally limited to one union."""
        query = (
            select(Employee)
            .where(Employee.company_id == company_id, Employee.is_active.is_(True))
            .options(
                selectinload(Employee.category).selectinload(UnionCategory.union),
                selectinload(Employee.sector),
            )
            .order_by(Employee.id)
        )
        if union_id is not None:
            query = query.join(
                UnionCategory, Employee.union_category_id == UnionCategory.id
            ).where(UnionCategory.union_id == union_id)

        result = await self.session.execute(query)
        return [_employee_record(e) for e in result.scalars().all()]

    async def list_effective_fixed_concepts(
        self,
        employee_ids: Iterable[int],
        period_start: date,
        period_end: date,
    ) -> dict[int, list[ConceptInput]]:
        """Fixed concepts overlapping the period, keyed by employee."""
        ids = list(employee_ids)
        by_employee: dict[int, list[ConceptInput]] = defaultdict(list)
        if not ids:
            return by_employee

        result = await self.session.execute(
            select(EmployeeFixedConcept)
            .where(
                EmployeeFixedConcept.employee_id.in_(ids),
                EmployeeFixedConcept.effective_from <= period_end,
                (
                    EmployeeFixedConcept.effective_to.is_(None)
                    | (EmployeeFixedConcept.effective_to >= period_start)
                ),
            )
            .options(selectinload(EmployeeFixedConcept.component))
            .order_by(EmployeeFixedConcept.id)
        )
        for concept in result.scalars().all():
            by_employee[concept.employee_id].append(
                ConceptInput(
                    component=_component_info(concept.component),
                    quantity=concept.quantity,
                    unit_amount=concept.unit_amount,
                    origin=LineOrigin.FIXED,
                )
            )
        return by_employee

    async def list_approved_variable_concepts(
        self, period_id: int, employee_ids: Iterable[int]
    ) -> dict[int, list[ConceptInput]]:
        """Approved variable concepts loaded for the period, keyed by employee."""
        ids = list(employee_ids)
        by_employee: dict[int, list[ConceptInput]] = defaultdict(list)
        if not ids:
            return by_employee

        result = await self.session.execute(
            select(PayrollVariableConcept)
            .where(
                PayrollVariableConcept.period_id == period_id,
                PayrollVariableConcept.employee_id.in_(ids),
                PayrollVariableConcept.status == "APPROVED",
            )
            .options(selectinload(PayrollVariableConcept.component))
            .order_by(PayrollVariableConcept.id)
        )
        for concept in result.scalars().all():
            by_employee[concept.employee_id].append(
                ConceptInput(
                    component=_component_info(concept.component),
                    quantity=concept.quantity,
                    unit_amount=concept.unit_amount,
                    origin=LineOrigin.VARIABLE,
                )
            )
        return by_employee

    async def load_employee_inputs(self, period: PeriodRecord) -> list[EmployeeInputs]:
        """Read every input for a run in a handful of set-based queries."""
        employees = await self.list_active_employees(period.company_id, period.union_id)
        ids = [e.employee_id for e in employees]

        fixed = await self.list_effective_fixed_concepts(
            ids, period.period_start, period.period_end
        )
        variable = await self.list_approved_variable_concepts(period.period_id, ids)

        return [
            EmployeeInputs(
                employee=employee,
                fixed_concepts=tuple(fixed.get(employee.employee_id, ())),
                variable_concepts=tuple(variable.get(employee.employee_id, ())),
            )
            for employee in employees
        ]
