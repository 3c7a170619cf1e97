# Test type: Unit Test
# Validation to be executed: Validates the 2024 remittance rules for foreign
#   income (residency, date earned, cutoff, remittance), reason codes and the
#   LTR visa exemption, entry data warnings and the residency summary.
# Command: pytest test/test_unit_foreign_income.py -v

"""Unit tests for thaitax.services.foreign_income_service module."""

from datetime import date

import pytest

from thaitax.models.schemas import ForeignIncomeEntry, VisaType
from thaitax.services.foreign_income_service import (
    analyze_foreign_income,
    classify_foreign_income,
    describe_residency,
    has_ltr_flat_rate_benefit,
    has_ltr_foreign_income_exemption,
    is_thai_tax_resident,
    validate_foreign_income_entry,
)


def _entry(earned="2024-03-01", remitted="2024-04-01", thb=100_000, tax_paid=10_000):
    return ForeignIncomeEntry(
        amountThb=thb, dateEarned=earned, dateRemitted=remitted, foreignTaxPaid=tax_paid
    )


class TestResidency:

    def test_threshold_inclusive(self):
        assert is_thai_tax_resident(180)
        assert not is_thai_tax_resident(179)


class TestClassify:

    def test_taxable(self):
        result = classify_foreign_income(_entry(), is_resident=True)
        assert result.isTaxable
        assert result.reasonCode == "taxable"
        assert result.taxableAmount == 100_000
        assert result.foreignTaxCredit == 10_000

    def test_not_resident_checked_first(self):
        result = classify_foreign_income(_entry(earned=""), is_resident=False)
        assert result.reasonCode == "not_resident"
        assert result.taxableAmount == 0

    @pytest.mark.parametrize("earned", ["", "   ", "not-a-date", "01/03/2024"])
    def test_missing_or_bad_date_earned(self, earned):
        result = classify_foreign_income(_entry(earned=earned), is_resident=True)
        assert not result.isTaxable
        assert result.reasonCode == "date_earned_missing"

    def test_earned_before_cutoff_ignores_remittance(self):
        result = classify_foreign_income(
            _entry(earned="2023-06-01", remitted="2024-02-01"), is_resident=True
        )
        assert not result.isTaxable
        assert result.reasonCode == "earned_before_cutoff"
        assert "January 1, 2024" in result.reason

    def test_cutoff_day_is_taxable(self):
        assert classify_foreign_income(_entry(earned="2024-01-01"), is_resident=True).isTaxable

    @pytest.mark.parametrize("remitted", [None, ""])
    def test_not_remitted(self, remitted):
        result = classify_foreign_income(_entry(remitted=remitted), is_resident=True)
        assert result.reasonCode == "not_remitted"
        assert result.foreignTaxCredit == 0


class TestAnalyze:

    def test_totals(self, foreign_entries):
        entries = [ForeignIncomeEntry.model_validate(e) for e in foreign_entries]
        result = analyze_foreign_income(entries, days_in_thailand=200)
        assert result.totalForeignIncome == 355_000
        assert result.taxableForeignIncome == 180_000
        assert result.nonTaxableForeignIncome == 175_000
        assert result.totalForeignTaxPaid == 35_000
        assert result.totalForeignTaxCredit == 20_000
        assert result.ltrExemptionApplied is False

    def test_non_resident_nothing_taxable(self, foreign_entries):
        entries = [ForeignIncomeEntry.model_validate(e) for e in foreign_entries]
        result = analyze_foreign_income(entries, days_in_thailand=90)
        assert result.taxableForeignIncome == 0
        assert {r.reasonCode for r in result.entries} == {"not_resident"}

    @pytest.mark.parametrize(
        "visa",
        [VisaType.LTR_WEALTHY_GLOBAL, VisaType.LTR_WEALTHY_PENSIONER, VisaType.LTR_WORK_FROM_THAILAND],
    )
    def test_ltr_exempt_visas(self, visa):
        result = analyze_foreign_income([_entry()], days_in_thailand=365, visa_type=visa)
        assert result.ltrExemptionApplied
        assert result.taxableForeignIncome == 0
        assert result.entries[0].reasonCode == "ltr_exempt"

    def test_highly_skilled_not_foreign_exempt(self):
        assert not has_ltr_foreign_income_exemption(VisaType.LTR_HIGHLY_SKILLED)
        assert has_ltr_flat_rate_benefit(VisaType.LTR_HIGHLY_SKILLED)
        result = analyze_foreign_income(
            [_entry()], days_in_thailand=365, visa_type=VisaType.LTR_HIGHLY_SKILLED
        )
        assert result.taxableForeignIncome == 100_000

    def test_empty(self):
        result = analyze_foreign_income([], days_in_thailand=365)
        assert result.entries == []
        assert result.totalForeignIncome == 0

    def test_summary_counts_and_effective_rate(self, foreign_entries):
        entries = [ForeignIncomeEntry.model_validate(e) for e in foreign_entries]
        result = analyze_foreign_income(entries, days_in_thailand=200)
        assert result.entryCount == 3
        assert result.taxableEntryCount == 1
        assert result.effectiveForeignTaxRate == pytest.approx(35_000 / 355_000)
        assert result.residencyStatus == "Thai Tax Resident"
        assert "200 days" in result.residencyDescription
        dumped = result.model_dump()
        assert dumped["entryCount"] == 3
        assert "effectiveForeignTaxRate" in dumped

    def test_summary_empty_non_resident(self):
        result = analyze_foreign_income([], days_in_thailand=100)
        assert result.entryCount == 0
        assert result.effectiveForeignTaxRate == 0
        assert result.residencyStatus == "Non-Resident"
        assert "less than 180" in result.residencyDescription


class TestResidencyDescription:

    def test_resident(self):
        status, description = describe_residency(180)
        assert status == "Thai Tax Resident"
        assert "180 days" in description

    def test_non_resident(self):
        status, _ = describe_residency(179)
        assert status == "Non-Resident"


class TestEntryValidation:

    TODAY = date(2025, 1, 1)

    def _complete(self, **overrides):
        data = {
            "amount": 3_000,
            "amountThb": 100_000,
            "dateEarned": "2024-03-01",
            "dateRemitted": "2024-04-01",
            "country": "United States",
        }
        data.update(overrides)
        return ForeignIncomeEntry(**data)

    def test_complete_entry_has_no_warnings(self):
        assert validate_foreign_income_entry(self._complete(), today=self.TODAY) == []

    def test_remitted_before_earned(self):
        entry = self._complete(dateEarned="2024-05-01", dateRemitted="2024-01-01")
        assert validate_foreign_income_entry(entry, today=self.TODAY) == [
            "Date remitted cannot be before date earned"
        ]

    def test_future_dates(self):
        entry = self._complete(dateEarned="2024-06-01", dateRemitted="2024-07-01")
        warnings = validate_foreign_income_entry(entry, today=date(2024, 5, 1))
        assert warnings == [
            "Date earned cannot be in the future",
            "Date remitted cannot be in the future",
        ]

    def test_missing_country_and_amounts(self):
        entry = self._complete(amount=0, amountThb=-5, country="  ")
        assert validate_foreign_income_entry(entry, today=self.TODAY) == [
            "Amount must be greater than 0",
            "THB amount must be greater than 0",
            "Country is required",
        ]

    def test_missing_date_earned(self):
        entry = self._complete(dateEarned="", dateRemitted=None)
        assert validate_foreign_income_entry(entry, today=self.TODAY) == ["Date earned is required"]

    def test_unparseable_dates(self):
        entry = self._complete(dateEarned="03/01/2024", dateRemitted="soon")
        assert validate_foreign_income_entry(entry, today=self.TODAY) == [
            "Date earned is not a valid date",
            "Date remitted is not a valid date",
        ]

    def test_warning_does_not_change_taxability(self):
        entry = ForeignIncomeEntry(amountThb=100, dateEarned="2024-05-01", dateRemitted="2024-01-01")
        result = classify_foreign_income(entry, True)
        assert result.isTaxable
        assert result.reasonCode == "taxable"
        assert result.taxableAmount == 100
        assert "Date remitted cannot be before date earned" in result.warnings

    def test_non_taxable_entries_carry_warnings(self):
        result = classify_foreign_income(_entry(), is_resident=False)
        assert result.reasonCode == "not_resident"
        assert "Country is required" in result.warnings

    def test_ltr_exempt_entries_carry_warnings(self):
        result = analyze_foreign_income(
            [_entry()], days_in_thailand=365, visa_type=VisaType.LTR_WEALTHY_GLOBAL
        )
        assert "Country is required" in result.entries[0].warnings
