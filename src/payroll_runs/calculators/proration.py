"""Date-based proration of fixed concepts."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from payroll_runs.calculators.types import ProrationResult

ZERO = Decimal("0")
ONE = Decimal("1")


def calculate_proration(
    hire_date: date,
    termination_date: date | None,
    period_start: date,
    period_end: date,
) -> ProrationResult:
    """Decide whether an employee belongs in the period and by how much.

    Both period bounds are inclusive. An employee hired after the period ends
    or terminated before it starts is excluded. Hiring or termination inside
    the period scales the factor by the inclusive days on the job; when both
    happen inside the period the smaller factor wins.
    """
    days_in_period = (period_end - period_start).days + 1

    if termination_date is not None and termination_date < period_start:
        return ProrationResult(False, ZERO, 0, days_in_period)
    if hire_date > period_end:
        return ProrationResult(False, ZERO, 0, days_in_period)

    factor = ONE
    days_worked = days_in_period

    if period_start <= hire_date <= period_end:
        days_worked = (period_end - hire_date).days + 1
        factor = min(Decimal(days_worked) / Decimal(days_in_period), ONE)

    if termination_date is not None and period_start <= termination_date <= period_end:
        days_until_exit = (termination_date - period_start).days + 1
        factor = min(factor, Decimal(days_until_exit) / Decimal(days_in_period))
        days_worked = min(days_worked, days_until_exit)

    return ProrationResult(factor > 0, factor, days_worked, days_in_period)
