"""Run line builder."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payroll_runs.calculators.types import (
    ConceptInput,
    ConceptLine,
    ConceptLineType,
    ContributionFlags,
    LineOrigin,
    StatutoryRate,
)


class LineItemBuilder:
    """Builds run lines from concept assignments and statutory rates.

    Amount conventions:
    - All amounts are non-negative; ``line_type`` says whether a line adds to
      gross or to deductions
    - Internal compute at full precision, amounts rounded to cents per line
    - Totals are sums of rounded line amounts, so they always reconcile
    """

    OUTPUT_PRECISION = Decimal("0.01")
    FACTOR_PRECISION = Decimal("0.000001")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def round_factor(factor: Decimal) -> Decimal:
        """Round a proration factor for persistence."""
        return factor.quantize(LineItemBuilder.FACTOR_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def create_concept_line(concept: ConceptInput, prorate_factor: Decimal) -> ConceptLine:
        """Create a line for a fixed or variable concept.

        Fixed concepts are scaled by the proration factor; variable concepts
        were loaded for this period specifically and are taken as-is.

        Raises:
            UnknownConceptTypeError: If the catalog type is not recognized
        """
        component = concept.component
        line_type = ConceptLineType.parse(component.type, component.code)

        calculated = LineItemBuilder.round_to_cents(concept.quantity * concept.unit_amount)
        if concept.origin == LineOrigin.FIXED:
            final = LineItemBuilder.round_to_cents(
                concept.quantity * concept.unit_amount * prorate_factor
            )
            formula = (
                f"{concept.quantity} x {concept.unit_amount} x "
                f"{LineItemBuilder.round_factor(prorate_factor)}"
            )
        else:
            final = calculated
            formula = None

        return ConceptLine(
            code=component.code,
            name=component.name,
            line_type=line_type,
            origin=concept.origin,
            quantity=concept.quantity,
            unit_amount=concept.unit_amount,
            base_amount=calculated,
            calculated_amount=calculated,
            final_amount=final,
            flags=component.flags,
            component_id=component.component_id,
            sort_order=component.sort_order,
            formula=formula,
        )

    @staticmethod
    def create_statutory_line(
        rate: StatutoryRate,
        base: Decimal,
        sort_order: int = 0,
    ) -> ConceptLine:
        """Create a calculated statutory withholding line (no catalog component)."""
        amount = LineItemBuilder.round_to_cents(base * rate.rate)
        return ConceptLine(
            code=rate.code,
            name=rate.name,
            line_type=ConceptLineType.DEDUCTION,
            origin=LineOrigin.CALCULATED,
            quantity=Decimal("1"),
            unit_amount=rate.rate,
            base_amount=base,
            calculated_amount=amount,
            final_amount=amount,
            flags=ContributionFlags(
                is_remunerative=False,
                affects_employee_contributions=False,
                affects_employer_contributions=False,
            ),
            component_id=None,
            sort_order=sort_order,
            formula=f"gross_remunerative x {rate.rate}",
        )

    @staticmethod
    def sum_by_type(lines: list[ConceptLine]) -> dict[ConceptLineType, Decimal]:
        """Sum final amounts by line type."""
        totals: dict[ConceptLineType, Decimal] = {lt: Decimal("0") for lt in ConceptLineType}
        for line in lines:
            totals[line.line_type] += line.final_amount
        return totals
