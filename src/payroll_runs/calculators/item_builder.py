"""Per-employee run item builder."""

from __future__ import annotations

from payroll_runs.calculators.accumulator import accumulate_concepts
from payroll_runs.calculators.line_builder import LineItemBuilder
from payroll_runs.calculators.proration import calculate_proration
from payroll_runs.calculators.statutory import (
    calculate_employer_cost,
    generate_statutory_deductions,
)
from payroll_runs.calculators.types import (
    DEFAULT_RATE_TABLE,
    ConceptLineType,
    EmployeeCalculationError,
    EmployeeInputs,
    EmployeeRecord,
    EmployeeSnapshot,
    PeriodWindow,
    RunItemResult,
    StatutoryRateTable,
)


class EmployeeDataInconsistentError(EmployeeCalculationError):
    """Raised when an employee record cannot be calculated as stored."""

    code = "EMPLOYEE_DATA_INCONSISTENT"

    def __init__(self, employee_id: int, reason: str):
        self.employee_id = employee_id
        self.reason = reason
        super().__init__(f"Employee {employee_id}: {reason}")


def take_snapshot(employee: EmployeeRecord) -> EmployeeSnapshot:
    """Validate a directory record and freeze the attributes a run item keeps."""
    if employee.base_salary is None:
        raise EmployeeDataInconsistentError(employee.employee_id, "missing base salary")
    if employee.hire_date is None:
        raise EmployeeDataInconsistentError(employee.employee_id, "missing hire date")
    if employee.termination_date is not None and employee.termination_date < employee.hire_date:
        raise EmployeeDataInconsistentError(
            employee.employee_id,
            f"termination date {employee.termination_date} precedes hire date {employee.hire_date}",
        )

    return EmployeeSnapshot(
        employee_id=employee.employee_id,
        employee_name=employee.employee_name,
        base_salary=employee.base_salary,
        hire_date=employee.hire_date,
        union_id=employee.union_id,
        union_name=employee.union_name,
        category_id=employee.category_id,
        category_name=employee.category_name,
        sector_id=employee.sector_id,
        sector_name=employee.sector_name,
    )


def build_run_item(
    inputs: EmployeeInputs,
    period: PeriodWindow,
    rate_table: StatutoryRateTable = DEFAULT_RATE_TABLE,
) -> RunItemResult | None:
    """Compute one employee's run item, or None if the employee is excluded.

    Pure: reads only its arguments, so items for different employees can be
    built concurrently.

    Pipeline:
    1) Snapshot and validate the employee record
    2) Proration against the period
    3) Concept lines (fixed prorated, variable as loaded), catalog order
    4) Accumulate gross, contribution bases and deductions
    5) Statutory withholdings on remunerative gross
    6) Net = gross total - total deductions
    7) Employer cost

    Raises:
        EmployeeDataInconsistentError: If the employee record is unusable
        UnknownConceptTypeError: If a concept type is not recognized
    """
    snapshot = take_snapshot(inputs.employee)

    proration = calculate_proration(
        snapshot.hire_date,
        inputs.employee.termination_date,
        period.period_start,
        period.period_end,
    )
    if not proration.include:
        return None

    concepts = sorted(
        (*inputs.fixed_concepts, *inputs.variable_concepts),
        key=lambda c: (c.component.sort_order, c.component.code),
    )
    lines = [
        LineItemBuilder.create_concept_line(concept, proration.prorate_factor)
        for concept in concepts
    ]

    totals = accumulate_concepts(lines)

    next_order = max((line.sort_order for line in lines), default=0) + 1
    statutory_lines = generate_statutory_deductions(
        totals.gross_remunerative, rate_table, start_order=next_order
    )
    all_lines = totals.lines + statutory_lines
    withheld = LineItemBuilder.sum_by_type(statutory_lines)[ConceptLineType.DEDUCTION]
    total_deductions = totals.total_deductions + withheld

    net_salary = totals.gross_total - total_deductions
    employer_cost = calculate_employer_cost(
        totals.gross_total, totals.employer_contribution_base, rate_table
    )

    return RunItemResult(
        snapshot=snapshot,
        proration=proration,
        lines=all_lines,
        gross_remunerative=totals.gross_remunerative,
        gross_total=totals.gross_total,
        total_deductions=total_deductions,
        net_salary=net_salary,
        employer_cost=employer_cost,
    )
