"""Type definitions for the run calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class EmployeeCalculationError(Exception):
    """Base for failures isolated to one employee's calculation."""

    code = "EMPLOYEE_CALCULATION_ERROR"


class UnknownConceptTypeError(EmployeeCalculationError):
    """Raised when a concept is neither an earning nor a deduction."""

    code = "UNKNOWN_CONCEPT_TYPE"

    def __init__(self, component_code: str, value: Any):
        self.component_code = component_code
        self.value = value
        super().__init__(
            f"Concept '{component_code}' has unknown type {value!r}; "
            "expected EARNING or DEDUCTION"
        )


class ConceptLineType(str, Enum):
    """Run line types. Amounts are non-negative; the type carries the sign."""

    EARNING = "EARNING"
    DEDUCTION = "DEDUCTION"

    @classmethod
    def parse(cls, value: Any, component_code: str) -> ConceptLineType:
        """Convert a catalog value, rejecting anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnknownConceptTypeError(component_code, value) from None


class LineOrigin(str, Enum):
    """Where a run line came from."""

    FIXED = "FIXED"
    VARIABLE = "VARIABLE"
    CALCULATED = "CALCULATED"


@dataclass(frozen=True)
class ContributionFlags:
    """Accumulation flags copied from the salary component catalog."""

    is_remunerative: bool = True
    affects_employee_contributions: bool = True
    affects_employer_contributions: bool = True


@dataclass(frozen=True)
class ComponentInfo:
    """Catalog entry as read at calculation time. ``type`` is still raw text."""

    component_id: int
    code: str
    name: str
    type: str
    sort_order: int = 0
    flags: ContributionFlags = field(default_factory=ContributionFlags)


@dataclass(frozen=True)
class ConceptInput:
    """A fixed or variable concept assignment for one employee."""

    component: ComponentInfo
    quantity: Decimal
    unit_amount: Decimal
    origin: LineOrigin


@dataclass(frozen=True)
class ConceptLine:
    """A computed run line before persistence."""

    code: str
    name: str
    line_type: ConceptLineType
    origin: LineOrigin
    quantity: Decimal
    unit_amount: Decimal
    base_amount: Decimal
    calculated_amount: Decimal
    final_amount: Decimal
    flags: ContributionFlags = field(default_factory=ContributionFlags)
    component_id: int | None = None
    sort_order: int = 0
    formula: str | None = None

    def metadata(self) -> dict[str, Any]:
        """Persisted metadata for the line."""
        return {
            "origin": self.origin.value,
            "isRemunerative": self.flags.is_remunerative,
            "affectsEmployeeContributions": self.flags.affects_employee_contributions,
            "affectsEmployerContributions": self.flags.affects_employer_contributions,
        }


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive date range of a payroll period."""

    period_id: int
    period_start: date
    period_end: date

    @property
    def days_in_period(self) -> int:
        return (self.period_end - self.period_start).days + 1


@dataclass(frozen=True)
class ProrationResult:
    """Inclusion decision and proration factor for one employee."""

    include: bool
    prorate_factor: Decimal
    days_worked: int
    days_in_period: int


@dataclass
class ConceptTotals:
    """Accumulated totals for a list of concept lines."""

    gross_remunerative: Decimal = Decimal("0")
    gross_total: Decimal = Decimal("0")
    employee_contribution_base: Decimal = Decimal("0")
    employer_contribution_base: Decimal = Decimal("0")
    total_deductions: Decimal = Decimal("0")
    lines: list[ConceptLine] = field(default_factory=list)


@dataclass(frozen=True)
class StatutoryRate:
    """A flat-percentage statutory contribution."""

    code: str
    name: str
    rate: Decimal


@dataclass(frozen=True)
class StatutoryRateTable:
    """Employee withholdings and employer contributions applied to a run."""

    employee_withholdings: tuple[StatutoryRate, ...]
    employer_contributions: tuple[StatutoryRate, ...]

    @property
    def employer_rate(self) -> Decimal:
        return sum((r.rate for r in self.employer_contributions), Decimal("0"))


# Jubilacion, obra social and Ley 19032 (PAMI) withholdings; employer JUB, OS and ART.
DEFAULT_RATE_TABLE = StatutoryRateTable(
    employee_withholdings=(
        StatutoryRate("JUB", "Jubilacion", Decimal("0.11")),
        StatutoryRate("OS", "Obra Social", Decimal("0.03")),
        StatutoryRate("L19032", "Ley 19032", Decimal("0.03")),
    ),
    employer_contributions=(
        StatutoryRate("JUB_EMP", "Jubilacion (empleador)", Decimal("0.16")),
        StatutoryRate("OS_EMP", "Obra Social (empleador)", Decimal("0.06")),
        StatutoryRate("ART", "Aseguradora de Riesgos del Trabajo", Decimal("0.03")),
    ),
)


@dataclass(frozen=True)
class EmployerCost:
    """Employer-side contributions for one employee."""

    gross_total: Decimal
    contribution_base: Decimal
    contributions: dict[str, Decimal]
    total: Decimal


@dataclass(frozen=True)
class EmployeeSnapshot:
    """Employee attributes frozen into a run item."""

    employee_id: int
    employee_name: str
    base_salary: Decimal
    hire_date: date
    union_id: int | None = None
    union_name: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    sector_id: int | None = None
    sector_name: str | None = None


@dataclass(frozen=True)
class EmployeeRecord:
    """Employee directory row as read at calculation time.

    Unlike the snapshot, fields may be missing; the item builder validates them.
    """

    employee_id: int
    employee_name: str
    hire_date: date | None
    termination_date: date | None
    base_salary: Decimal | None
    union_id: int | None = None
    union_name: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    sector_id: int | None = None
    sector_name: str | None = None


@dataclass(frozen=True)
class EmployeeInputs:
    """Everything needed to compute one employee's run item."""

    employee: EmployeeRecord
    fixed_concepts: tuple[ConceptInput, ...] = ()
    variable_concepts: tuple[ConceptInput, ...] = ()


@dataclass
class RunItemResult:
    """Computed run item and its lines."""

    snapshot: EmployeeSnapshot
    proration: ProrationResult
    lines: list[ConceptLine]
    gross_remunerative: Decimal
    gross_total: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    employer_cost: EmployerCost
    advances_discounted: Decimal = Decimal("0")

    @property
    def employee_id(self) -> int:
        return self.snapshot.employee_id
