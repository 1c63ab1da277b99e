"""Tests for run line builder."""

from decimal import Decimal

import pytest

from payroll_runs.calculators.line_builder import LineItemBuilder
from payroll_runs.calculators.types import (
    ComponentInfo,
    ConceptInput,
    ConceptLineType,
    LineOrigin,
    StatutoryRate,
    UnknownConceptTypeError,
)


def make_concept(
    type_: str = "EARNING",
    quantity: str = "1",
    unit_amount: str = "300000",
    origin: LineOrigin = LineOrigin.FIXED,
) -> ConceptInput:
    return ConceptInput(
        component=ComponentInfo(
            component_id=7, code="BASIC", name="Sueldo basico", type=type_, sort_order=1
        ),
        quantity=Decimal(quantity),
        unit_amount=Decimal(unit_amount),
        origin=origin,
    )


class TestLineItemBuilder:
    """Test line builder functionality."""

    def test_round_to_cents(self):
        """Test rounding to 2 decimal places."""
        assert LineItemBuilder.round_to_cents(Decimal("10.124")) == Decimal("10.12")

        # Half-up rounding
        assert LineItemBuilder.round_to_cents(Decimal("10.125")) == Decimal("10.13")
        assert LineItemBuilder.round_to_cents(Decimal("10.135")) == Decimal("10.14")

    def test_round_factor(self):
        """Test factors are kept to 6 decimal places."""
        assert LineItemBuilder.round_factor(Decimal(2) / Decimal(3)) == Decimal("0.666667")
        assert LineItemBuilder.round_factor(Decimal("0.7")) == Decimal("0.700000")

    def test_fixed_concept_prorated(self):
        """Test fixed concept final amount is scaled by the factor."""
        line = LineItemBuilder.create_concept_line(make_concept(), Decimal("0.7"))

        assert line.line_type == ConceptLineType.EARNING
        assert line.origin == LineOrigin.FIXED
        assert line.calculated_amount == Decimal("300000.00")
        assert line.final_amount == Decimal("210000.00")
        assert line.component_id == 7
        assert line.sort_order == 1
        assert "0.700000" in line.formula

    def test_variable_concept_not_prorated(self):
        """Test variable concept is taken at quantity x unit amount."""
        concept = make_concept(quantity="2", unit_amount="5000", origin=LineOrigin.VARIABLE)
        line = LineItemBuilder.create_concept_line(concept, Decimal("0.5"))

        assert line.final_amount == Decimal("10000.00")
        assert line.formula is None

    def test_prorated_amount_uses_unrounded_factor(self):
        """Test amounts are prorated before rounding the factor."""
        line = LineItemBuilder.create_concept_line(
            make_concept(unit_amount="1000000"), Decimal(1) / Decimal(3)
        )

        # 0.333333 would give 333333.00
        assert line.final_amount == Decimal("333333.33")

    def test_deduction_line(self):
        """Test deduction amounts stay non-negative."""
        line = LineItemBuilder.create_concept_line(
            make_concept(type_="DEDUCTION", unit_amount="3000"), Decimal("1")
        )

        assert line.line_type == ConceptLineType.DEDUCTION
        assert line.final_amount == Decimal("3000.00")

    def test_type_is_normalized(self):
        """Test lowercase and padded catalog types are accepted."""
        line = LineItemBuilder.create_concept_line(make_concept(type_=" earning "), Decimal("1"))

        assert line.line_type == ConceptLineType.EARNING

    def test_unknown_type_rejected(self):
        """Test unknown catalog types raise at the boundary."""
        with pytest.raises(UnknownConceptTypeError) as exc_info:
            LineItemBuilder.create_concept_line(make_concept(type_="BONUS"), Decimal("1"))

        assert exc_info.value.component_code == "BASIC"
        assert exc_info.value.value == "BONUS"

    def test_statutory_line(self):
        """Test statutory withholding line."""
        line = LineItemBuilder.create_statutory_line(
            StatutoryRate("JUB", "Jubilacion", Decimal("0.11")), Decimal("210000"), sort_order=4
        )

        assert line.line_type == ConceptLineType.DEDUCTION
        assert line.origin == LineOrigin.CALCULATED
        assert line.component_id is None
        assert line.final_amount == Decimal("23100.00")
        assert line.unit_amount == Decimal("0.11")
        assert line.sort_order == 4
        assert line.metadata()["isRemunerative"] is False

    def test_sum_by_type(self):
        """Test summing lines by type."""
        lines = [
            LineItemBuilder.create_concept_line(make_concept(), Decimal("1")),
            LineItemBuilder.create_concept_line(
                make_concept(type_="DEDUCTION", unit_amount="3000"), Decimal("1")
            ),
            LineItemBuilder.create_statutory_line(
                StatutoryRate("OS", "Obra Social", Decimal("0.03")), Decimal("300000")
            ),
        ]
        totals = LineItemBuilder.sum_by_type(lines)

        assert totals[ConceptLineType.EARNING] == Decimal("300000.00")
        assert totals[ConceptLineType.DEDUCTION] == Decimal("12000.00")
