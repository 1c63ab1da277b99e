"""Pydantic schemas for run results returned to callers."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ItemFailure(BaseModel):
    """An employee left out of a run because their calculation failed."""

    employee_id: int
    code: str
    message: str


class RunSummary(BaseModel):
    """Summary of a calculated payroll run."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    period_id: int
    run_number: int
    run_type: str
    status: str
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    total_employer_cost: Decimal
    employee_count: int
    calculated_at: datetime | None = None
    failures: list[ItemFailure] = Field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return len(self.failures) > 0


class RunItemLineResponse(BaseModel):
    """Schema for a persisted run line."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    type: str
    quantity: Decimal
    unit_amount: Decimal
    base_amount: Decimal
    final_amount: Decimal
    formula: str | None = None


class RunItemResponse(BaseModel):
    """Schema for one employee's run item with its snapshot."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    employee_name: str
    union_name: str | None = None
    category_name: str | None = None
    sector_name: str | None = None
    base_salary: Decimal
    hire_date: date
    days_worked: int
    days_in_period: int
    prorate_factor: Decimal
    gross_remunerative: Decimal
    gross_total: Decimal
    total_deductions: Decimal
    advances_discounted: Decimal
    net_salary: Decimal
    employer_cost: Decimal
    lines: list[RunItemLineResponse] = Field(default_factory=list)


class RunDetail(RunSummary):
    """Run summary with every item and line."""

    items: list[RunItemResponse] = Field(default_factory=list)
