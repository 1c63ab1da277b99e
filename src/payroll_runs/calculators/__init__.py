"""Payroll run calculators."""

from payroll_runs.calculators.accumulator import accumulate_concepts
from payroll_runs.calculators.item_builder import (
    EmployeeDataInconsistentError,
    build_run_item,
    take_snapshot,
)
from payroll_runs.calculators.line_builder import LineItemBuilder
from payroll_runs.calculators.proration import calculate_proration
from payroll_runs.calculators.statutory import (
    calculate_employer_cost,
    generate_statutory_deductions,
)
from payroll_runs.calculators.types import (
    DEFAULT_RATE_TABLE,
    ConceptLineType,
    StatutoryRateTable,
    UnknownConceptTypeError,
)

__all__ = [
    "DEFAULT_RATE_TABLE",
    "ConceptLineType",
    "EmployeeDataInconsistentError",
    "LineItemBuilder",
    "StatutoryRateTable",
    "UnknownConceptTypeError",
    "accumulate_concepts",
    "build_run_item",
    "calculate_employer_cost",
    "calculate_proration",
    "generate_statutory_deductions",
    "take_snapshot",
]
