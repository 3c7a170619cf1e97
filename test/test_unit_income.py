# Test type: Unit Test
# Validation to be executed: Validates income grouping by type, lenient entry
#   normalisation, dividend election and gross assessable income.
# Command: pytest test/test_unit_income.py -v

"""Unit tests for thaitax.services.income_service and entry normalisation."""

from thaitax.models.schemas import (
    CompanyOwnerForm,
    DividendEntry,
    ForeignIncomeEntry,
    ThaiIncomeEntry,
)
from thaitax.services.foreign_income_service import analyze_foreign_income
from thaitax.services.income_service import (
    aggregate_income,
    calculate_employment_income,
    split_dividends,
    summarize_income_by_type,
)


class TestEntryNormalisation:

    def test_withholding_clamped_to_gross(self):
        entry = ThaiIncomeEntry(grossAmount=10_000, withholdingAmount=25_000)
        assert entry.withholdingAmount == 10_000

    def test_malformed_values_become_zero(self):
        entry = ThaiIncomeEntry.model_validate(
            {"grossAmount": "abc", "withholdingAmount": -5, "monthReceived": 14}
        )
        assert entry.grossAmount == 0
        assert entry.withholdingAmount == 0
        assert entry.monthReceived == 0

    def test_unknown_income_type_kept(self):
        assert ThaiIncomeEntry(incomeType="crypto").incomeType == "crypto"

    def test_blank_income_type_is_other(self):
        assert ThaiIncomeEntry.model_validate({"incomeType": ""}).incomeType == "other"

    def test_thai_dividend_withholding_derived(self):
        entry = DividendEntry.model_validate(
            {"amount": 100_000, "dividendType": "thai_listed", "withholdingTax": 1}
        )
        assert entry.withholdingTax == 10_000

    def test_foreign_dividend_no_withholding(self):
        entry = DividendEntry.model_validate(
            {"amount": 100_000, "dividendType": "foreign", "withholdingTax": 5_000}
        )
        assert entry.withholdingTax == 0


class TestGrouping:

    def test_first_seen_order(self, freelancer_entries):
        entries = [ThaiIncomeEntry.model_validate(e) for e in freelancer_entries]
        groups = summarize_income_by_type(entries)
        assert [g.incomeType for g in groups] == ["contractor_40_7", "liberal_profession_40_6"]
        assert groups[0].grossAmount == 500_000
        assert groups[0].withholdingAmount == 15_000


class TestDividends:

    def test_split(self):
        dividends = [
            DividendEntry(amount=100_000, dividendType="thai_listed", includeInPIT=True),
            DividendEntry(amount=50_000, dividendType="thai_unlisted", includeInPIT=False),
        ]
        assert split_dividends(dividends) == (100_000, 50_000, 10_000)


class TestAggregate:

    def test_freelancer_with_foreign(self, freelancer_entries, foreign_entries):
        thai = [ThaiIncomeEntry.model_validate(e) for e in freelancer_entries]
        foreign = analyze_foreign_income(
            [ForeignIncomeEntry.model_validate(e) for e in foreign_entries], 365
        )
        summary = aggregate_income(thai, foreign)
        assert summary.thaiGrossTotal == 600_000
        assert summary.thaiWithholdingTotal == 18_000
        assert summary.taxableForeignIncome == 180_000
        assert summary.nonTaxableForeignIncome == 175_000
        assert summary.grossIncome == 780_000

    def test_company_owner(self):
        form = CompanyOwnerForm.model_validate({
            "employmentType": "company_owner",
            "salaryFromCompany": 600_000,
            "directorFees": 120_000,
            "otherCompanyBenefits": 30_000,
            "dividendEntries": [
                {"amount": 200_000, "dividendType": "thai_unlisted", "includeInPIT": True},
                {"amount": 300_000, "dividendType": "thai_listed", "includeInPIT": False},
            ],
        })
        employment = calculate_employment_income(form)
        summary = aggregate_income([], employment_income=employment, dividends=form.dividendEntries)
        assert employment == 750_000
        assert summary.includedDividendIncome == 200_000
        assert summary.excludedDividendIncome == 300_000
        assert summary.dividendWithholdingCredit == 20_000
        assert summary.grossIncome == 950_000
