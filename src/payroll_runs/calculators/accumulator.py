"""Concept accumulation into gross, contribution bases and deductions."""

from __future__ import annotations

from payroll_runs.calculators.types import (
    ConceptLine,
    ConceptLineType,
    ConceptTotals,
    UnknownConceptTypeError,
)


def accumulate_concepts(lines: list[ConceptLine]) -> ConceptTotals:
    """Fold concept lines into totals.

    EARNING lines add to gross total, and to remunerative gross and the
    contribution bases according to their flags. DEDUCTION lines add to
    total deductions. Lines are passed through unchanged for persistence.
    """
    totals = ConceptTotals(lines=list(lines))

    for line in lines:
        if line.line_type == ConceptLineType.EARNING:
            totals.gross_total += line.final_amount
            if line.flags.is_remunerative:
                totals.gross_remunerative += line.final_amount
            if line.flags.affects_employee_contributions:
                totals.employee_contribution_base += line.final_amount
            if line.flags.affects_employer_contributions:
                totals.employer_contribution_base += line.final_amount
        elif line.line_type == ConceptLineType.DEDUCTION:
            totals.total_deductions += line.final_amount
        else:
            raise UnknownConceptTypeError(line.code, line.line_type)

    return totals
