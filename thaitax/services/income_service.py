"""Income aggregation: Thai entries, taxable foreign income, company income.

Gross assessable income = Thai gross + taxable foreign + company income, where
company income is employment income (salary + director fees + benefits) plus
the dividends the owner elected to include in PIT. Dividends left out of PIT
are excluded from both gross income and credits; their withholding is final.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from thaitax.models.schemas import (
    CompanyOwnerForm,
    DividendEntry,
    ForeignIncomeAnalysis,
    IncomeTypeSummary,
    IncomeSummary,
    ThaiIncomeEntry,
)


def total_gross(entries: List[ThaiIncomeEntry]) -> float:
    return sum(entry.grossAmount for entry in entries)


def total_withholding(entries: List[ThaiIncomeEntry]) -> float:
    return sum(entry.withholdingAmount for entry in entries)


def summarize_income_by_type(entries: List[ThaiIncomeEntry]) -> List[IncomeTypeSummary]:
    """Gross and withholding per income type, in first-seen order."""
    groups: dict[str, tuple[float, float]] = {}
    for entry in entries:
        gross, withheld = groups.get(entry.incomeType, (0.0, 0.0))
        groups[entry.incomeType] = (gross + entry.grossAmount, withheld + entry.withholdingAmount)

    return [
        IncomeTypeSummary(incomeType=income_type, grossAmount=gross, withholdingAmount=withheld)
        for income_type, (gross, withheld) in groups.items()
    ]


def calculate_employment_income(form: CompanyOwnerForm) -> float:
    return form.salaryFromCompany + form.directorFees + form.otherCompanyBenefits


def split_dividends(dividends: List[DividendEntry]) -> Tuple[float, float, float]:
    """Return (included amount, excluded amount, withholding credit on included)."""
    included = sum(d.amount for d in dividends if d.includeInPIT)
    excluded = sum(d.amount for d in dividends if not d.includeInPIT)
    credit = sum(d.withholdingTax for d in dividends if d.includeInPIT)
    return included, excluded, credit


def aggregate_income(
    thai_entries: List[ThaiIncomeEntry],
    foreign: Optional[ForeignIncomeAnalysis] = None,
    employment_income: float = 0.0,
    dividends: Optional[List[DividendEntry]] = None,
) -> IncomeSummary:
    """Merge every income source into one gross assessable figure."""
    thai_gross = total_gross(thai_entries)
    included, excluded, dividend_credit = split_dividends(dividends or [])

    foreign_total = foreign.totalForeignIncome if foreign else 0.0
    taxable_foreign = foreign.taxableForeignIncome if foreign else 0.0

    return IncomeSummary(
        byType=summarize_income_by_type(thai_entries),
        thaiGrossTotal=thai_gross,
        thaiWithholdingTotal=total_withholding(thai_entries),
        foreignIncomeTotal=foreign_total,
        taxableForeignIncome=taxable_foreign,
        nonTaxableForeignIncome=foreign_total - taxable_foreign,
        employmentIncome=employment_income,
        includedDividendIncome=included,
        excludedDividendIncome=excluded,
        dividendWithholdingCredit=dividend_credit,
        grossIncome=thai_gross + taxable_foreign + employment_income + included,
    )
