"""Tests for statutory withholdings and employer cost."""

from decimal import Decimal

from payroll_runs.calculators.statutory import (
    calculate_employer_cost,
    generate_statutory_deductions,
)
from payroll_runs.calculators.types import (
    DEFAULT_RATE_TABLE,
    ConceptLineType,
    LineOrigin,
    StatutoryRate,
    StatutoryRateTable,
)


class TestStatutoryDeductions:
    """Test employee withholding lines."""

    def test_default_rates(self):
        """Test JUB 11%, OS 3% and L19032 3% on remunerative gross."""
        lines = generate_statutory_deductions(Decimal("210000"))

        assert [line.code for line in lines] == ["JUB", "OS", "L19032"]
        assert [line.final_amount for line in lines] == [
            Decimal("23100.00"),
            Decimal("6300.00"),
            Decimal("6300.00"),
        ]
        for line in lines:
            assert line.line_type == ConceptLineType.DEDUCTION
            assert line.origin == LineOrigin.CALCULATED
            assert line.component_id is None
            assert line.base_amount == Decimal("210000")

    def test_zero_gross_still_emits_lines(self):
        """Test all three lines are present at zero gross."""
        lines = generate_statutory_deductions(Decimal("0"))

        assert len(lines) == 3
        assert all(line.final_amount == Decimal("0") for line in lines)

    def test_each_line_rounded(self):
        """Test every line is rounded to cents on its own."""
        lines = generate_statutory_deductions(Decimal("1000.05"))

        # 110.0055 -> 110.01; 30.0015 -> 30.00
        assert [line.final_amount for line in lines] == [
            Decimal("110.01"),
            Decimal("30.00"),
            Decimal("30.00"),
        ]

    def test_sort_order_starts_after_concepts(self):
        """Test statutory lines are numbered from the given start."""
        lines = generate_statutory_deductions(Decimal("100"), start_order=11)

        assert [line.sort_order for line in lines] == [11, 12, 13]

    def test_custom_rate_table(self):
        """Test a different jurisdiction's rate table."""
        table = StatutoryRateTable(
            employee_withholdings=(StatutoryRate("PENSION", "Pension", Decimal("0.10")),),
            employer_contributions=(),
        )
        lines = generate_statutory_deductions(Decimal("5000"), table)

        assert len(lines) == 1
        assert lines[0].code == "PENSION"
        assert lines[0].final_amount == Decimal("500.00")


class TestEmployerCost:
    """Test employer cost calculation."""

    def test_default_employer_rate(self):
        """Test default employer contributions add up to 25%."""
        assert DEFAULT_RATE_TABLE.employer_rate == Decimal("0.25")

    def test_employer_cost(self):
        """Test cost is gross plus contributions on the employer base."""
        cost = calculate_employer_cost(Decimal("210000"), Decimal("210000"))

        assert cost.contributions == {
            "JUB_EMP": Decimal("33600.00"),
            "OS_EMP": Decimal("12600.00"),
            "ART": Decimal("6300.00"),
        }
        assert cost.total == Decimal("262500.00")

    def test_base_excludes_exempt_earnings(self):
        """Test contributions use the employer base, not the gross total."""
        cost = calculate_employer_cost(Decimal("325000"), Decimal("320000"))

        assert cost.gross_total == Decimal("325000")
        assert cost.contribution_base == Decimal("320000")
        assert cost.total == Decimal("405000.00")

    def test_total_rounded_once(self):
        """Test the total rounds gross plus base x 25%, not the rounded parts."""
        cost = calculate_employer_cost(Decimal("100.02"), Decimal("100.02"))

        # 100.02 + 25.005 = 125.025 -> 125.03; the parts round to 16.00 + 6.00 + 3.00
        assert cost.total == Decimal("125.03")
        assert cost.contributions == {
            "JUB_EMP": Decimal("16.00"),
            "OS_EMP": Decimal("6.00"),
            "ART": Decimal("3.00"),
        }

    def test_zero_base(self):
        """Test no contributions on a zero base."""
        cost = calculate_employer_cost(Decimal("5000"), Decimal("0"))

        assert cost.total == Decimal("5000.00")
