# Test type: Unit Test
# Validation to be executed: Validates the PND94 half-year filing trigger and
#   provisional tax, the VAT registration threshold, the combined view and
#   the human-readable summaries.
# Command: pytest test/test_unit_obligations.py -v

"""Unit tests for thaitax.services.obligation_service module."""

from thaitax.models.schemas import ThaiIncomeEntry
from thaitax.services.obligation_service import (
    calculate_half_year_income,
    calculate_provisional_tax,
    check_all_obligations,
    check_pnd94_obligation,
    check_vat_registration,
    find_threshold_crossed_month,
)


def _entry(gross, income_type="contractor_40_7", month=3) -> ThaiIncomeEntry:
    return ThaiIncomeEntry(grossAmount=gross, incomeType=income_type, monthReceived=month)


class TestHalfYearIncome:

    def test_only_qualifying_types_in_first_half(self):
        entries = [
            _entry(50_000, "contractor_40_7", 1),
            _entry(40_000, "rental_40_5", 6),
            _entry(30_000, "liberal_profession_40_6", 7),
            _entry(100_000, "salary_40_1", 2),
            _entry(20_000, "business_sales_40_8", 0),
        ]
        assert calculate_half_year_income(entries) == 90_000


class TestPND94:

    def test_single_filer(self):
        result = check_pnd94_obligation([_entry(200_000)], marital_status="single")
        assert result.required
        assert result.threshold == 60_000
        assert result.provisionalTax == 2_250
        assert result.dueDate == "2024-09-30"

    def test_spouse_allowance(self):
        result = check_pnd94_obligation(
            [_entry(200_000)], marital_status="married", spouse_has_no_income=True
        )
        assert result.threshold == 120_000
        assert result.provisionalTax == 750

    def test_threshold_is_strict(self):
        result = check_pnd94_obligation([_entry(60_000)])
        assert not result.required
        assert result.provisionalTax == 0

    def test_married_with_earning_spouse_uses_single_threshold(self):
        result = check_pnd94_obligation(
            [_entry(100_000)], marital_status="married", spouse_has_no_income=False
        )
        assert result.threshold == 60_000
        assert result.required

    def test_provisional_tax_rounds_half_up(self):
        # annual 321,000 − 100,000 − 60,000 = 161,000 → tax 550 → 275
        assert calculate_provisional_tax(160_500) == 275
        # annual 310,010 − 100,000 − 60,000 = 150,010 → tax 0.5 → 0.25 → 0
        assert calculate_provisional_tax(155_005) == 0
        # annual 310,020 → taxable 150,020 → tax 1.0 → 0.5 → 1
        assert calculate_provisional_tax(155_010) == 1


class TestVAT:

    def test_exactly_at_threshold(self):
        result = check_vat_registration([_entry(1_800_000, "business_sales_40_8", 5)])
        assert result.required
        assert result.mustRegisterWithinDays == 30
        assert result.thresholdCrossedMonth == 5

    def test_just_below_threshold(self):
        result = check_vat_registration([_entry(1_799_999, "business_sales_40_8")])
        assert not result.required
        assert result.mustRegisterWithinDays == 0
        assert result.thresholdCrossedMonth is None

    def test_all_income_types_count(self):
        result = check_vat_registration([
            _entry(1_000_000, "salary_40_1"),
            _entry(900_000, "rental_40_5"),
        ])
        assert result.turnover == 1_900_000
        assert result.required

    def test_crossing_month(self):
        entries = [
            _entry(1_000_000, month=2),
            _entry(500_000, month=8),
            _entry(400_000, month=11),
        ]
        assert find_threshold_crossed_month(entries, 1_800_000) == 11

    def test_crossing_undated(self):
        entries = [_entry(1_000_000, month=2), _entry(900_000, month=0)]
        result = check_vat_registration(entries)
        assert result.required
        assert result.thresholdCrossedMonth is None


class TestCombined:

    def test_both_obligations(self):
        result = check_all_obligations([_entry(2_000_000, "business_sales_40_8", 3)])
        assert result.hasAnyObligation
        assert len(result.urgentItems) == 2
        assert "2024-09-30" in result.urgentItems[0]
        assert "30 days" in result.urgentItems[1]

    def test_none(self):
        result = check_all_obligations([_entry(10_000)])
        assert not result.hasAnyObligation
        assert result.urgentItems == []

    def test_empty(self):
        result = check_all_obligations([])
        assert result.pnd94.halfYearIncome == 0
        assert result.vat.turnover == 0


class TestSummaries:

    def test_pnd94_required(self):
        result = check_pnd94_obligation([_entry(200_000)])
        assert result.summary == (
            "PND94 mid-year filing is required. Your Jan-Jun qualifying income (฿200,000) "
            "exceeds ฿60,000. Estimated provisional tax: ฿2,250. Due by 2024-09-30."
        )

    def test_pnd94_not_required(self):
        result = check_pnd94_obligation([_entry(50_000)])
        assert result.summary.startswith("PND94 filing is not required.")
        assert "(฿50,000)" in result.summary
        assert "threshold of ฿60,000" in result.summary

    def test_vat_required(self):
        result = check_vat_registration([_entry(2_000_000, "business_sales_40_8", 3)])
        assert result.summary == (
            "VAT registration is required. Your annual turnover (฿2,000,000) exceeds "
            "฿1,800,000. You must register within 30 days of exceeding the threshold."
        )

    def test_vat_not_required(self):
        result = check_vat_registration([_entry(10_000)])
        assert result.summary == (
            "VAT registration is not required. Your annual turnover (฿10,000) "
            "is below the ฿1,800,000 threshold."
        )

    def test_combined_result_carries_summaries(self):
        result = check_all_obligations([_entry(10_000)])
        assert result.pnd94.summary
        assert result.vat.summary
