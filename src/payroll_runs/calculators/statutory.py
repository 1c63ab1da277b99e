"""Statutory withholdings and employer contributions."""

from __future__ import annotations

from decimal import Decimal

from payroll_runs.calculators.line_builder import LineItemBuilder
from payroll_runs.calculators.types import (
    DEFAULT_RATE_TABLE,
    ConceptLine,
    EmployerCost,
    StatutoryRateTable,
)


def generate_statutory_deductions(
    gross_remunerative: Decimal,
    rate_table: StatutoryRateTable = DEFAULT_RATE_TABLE,
    start_order: int = 0,
) -> list[ConceptLine]:
    """Build one withholding line per employee rate, always, even at zero gross."""
    return [
        LineItemBuilder.create_statutory_line(rate, gross_remunerative, start_order + i)
        for i, rate in enumerate(rate_table.employee_withholdings)
    ]


def calculate_employer_cost(
    gross_total: Decimal,
    employer_contribution_base: Decimal,
    rate_table: StatutoryRateTable = DEFAULT_RATE_TABLE,
) -> EmployerCost:
    """Employer cost = gross total + employer base x combined employer rate.

    The per-code contributions are a rounded breakdown only; the total is
    rounded once from the unrounded sum.
    """
    contributions = {
        rate.code: LineItemBuilder.round_to_cents(employer_contribution_base * rate.rate)
        for rate in rate_table.employer_contributions
    }
    total = gross_total + employer_contribution_base * rate_table.employer_rate
    return EmployerCost(
        gross_total=gross_total,
        contribution_base=employer_contribution_base,
        contributions=contributions,
        total=LineItemBuilder.round_to_cents(total),
    )
