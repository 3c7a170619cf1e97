"""Final tax resolution per employment profile.

Pipeline (shared by every profile):
    Step 1  Aggregate income                    (income_service)
    Step 2  Expense deduction                   (expense_service / standard 50 %)
    Step 3  Allowances + capped deductions      (allowance_service)
    Step 4  Taxable income = gross − 2 − 3, floored at 0
    Step 5  Progressive tax                     (tax_service)
    Step 6  Credits: withholding, dividend WHT, foreign tax (capped)
    Step 7  Net payable / refund, effective rate

Profiles only differ in how they shape the inputs to steps 1, 2 and 6:
    salaried         annualIncome, standard deduction, taxWithheld
    freelancer       Thai + foreign entries, expense method, entry withholding
    sole_proprietor  freelancer + business-category income mapping
    company_owner    employment income + elected dividends, standard deduction
"""

from __future__ import annotations

import logging
from typing import List, Optional, assert_never

from thaitax.config import settings
from thaitax.models.schemas import (
    AllowanceBreakdown,
    BusinessCategory,
    CompanyOwnerForm,
    DeductionBreakdown,
    DividendAdvice,
    DividendEntry,
    DividendType,
    ExpenseComparisonResult,
    ExpenseMethod,
    ForeignIncomeAnalysis,
    FreelancerForm,
    IncomeSummary,
    IncomeType,
    ObligationCheckResult,
    SalariedForm,
    SelfEmployedBase,
    SoleProprietorForm,
    TaxForm,
    TaxpayerBase,
    TaxResult,
    ThaiIncomeEntry,
)
from thaitax.services.allowance_service import (
    calculate_allowances,
    calculate_deductions,
    calculate_standard_deduction,
)
from thaitax.services.expense_service import (
    calculate_actual_expenses,
    calculate_flat_rate_deductions,
    compare_expense_deductions,
    resolve_expense_deduction,
)
from thaitax.services.foreign_income_service import (
    analyze_foreign_income,
    has_ltr_flat_rate_benefit,
)
from thaitax.services.income_service import (
    aggregate_income,
    calculate_employment_income,
    split_dividends,
)
from thaitax.services.obligation_service import check_all_obligations
from thaitax.services.tax_service import bracket_breakdown, calculate_tax
from thaitax.utils.helpers import safe_ratio

logger = logging.getLogger(__name__)

BUSINESS_CATEGORY_TO_INCOME_TYPE: dict[BusinessCategory, str] = {
    BusinessCategory.RETAIL_TRADE: IncomeType.BUSINESS_SALES.value,
    BusinessCategory.MANUFACTURING: IncomeType.BUSINESS_SALES.value,
    BusinessCategory.SERVICE_BUSINESS: IncomeType.CONTRACTOR.value,
    BusinessCategory.RESTAURANT_FOOD: IncomeType.BUSINESS_SALES.value,
    BusinessCategory.TRANSPORTATION: IncomeType.CONTRACTOR.value,
    BusinessCategory.CONSTRUCTION: IncomeType.CONTRACTOR.value,
    BusinessCategory.PROFESSIONAL_SERVICE: IncomeType.LIBERAL_PROFESSION.value,
    BusinessCategory.RENTAL_PROPERTY: IncomeType.RENTAL.value,
    BusinessCategory.AGRICULTURE: IncomeType.BUSINESS_SALES.value,
    BusinessCategory.OTHER_BUSINESS: IncomeType.BUSINESS_SALES.value,
}

_THAI_DIVIDEND_TYPES = (DividendType.THAI_LISTED, DividendType.THAI_UNLISTED)


# ── Shared steps ──────────────────────────────────────────────────────────

def _taxable_income(
    form: TaxpayerBase,
    gross_income: float,
    progressive_income: float,
    expense_deduction: float,
) -> tuple[AllowanceBreakdown, DeductionBreakdown, float]:
    """Steps 3–4. The donation cap is set by the full gross income."""
    allowances = calculate_allowances(form)
    deductions = calculate_deductions(form, gross_income)
    taxable = max(
        0.0, progressive_income - expense_deduction - allowances.total - deductions.total
    )
    return allowances, deductions, taxable


def cap_foreign_tax_credit(
    candidate_credit: float,
    taxable_foreign_income: float,
    progressive_income: float,
    progressive_tax: float,
) -> float:
    """Limit the foreign tax credit to the Thai tax attributable to foreign income.

    Attributable tax is the progressive tax pro-rated by the foreign share of
    the income it was computed on.
    """
    if taxable_foreign_income <= 0 or progressive_income <= 0:
        return 0.0
    share = min(1.0, taxable_foreign_income / progressive_income)
    return min(candidate_credit, progressive_tax * share)


def _assemble(
    *,
    employment_type: str,
    income: IncomeSummary,
    allowances: AllowanceBreakdown,
    deductions: DeductionBreakdown,
    taxable_income: float,
    expense_deduction: float,
    withholding_credits: float,
    dividend_credits: float = 0.0,
    flat_taxed_income: float = 0.0,
    expense_method: Optional[ExpenseMethod] = None,
    expense_comparison: Optional[ExpenseComparisonResult] = None,
    foreign: Optional[ForeignIncomeAnalysis] = None,
    obligations: Optional[ObligationCheckResult] = None,
    dividend_advice: Optional[DividendAdvice] = None,
    ltr_benefit: bool = False,
) -> TaxResult:
    """Steps 5–7."""
    gross_income = income.grossIncome
    progressive_income = gross_income - flat_taxed_income

    progressive_tax = calculate_tax(taxable_income)
    ltr_flat_tax = flat_taxed_income * settings.LTR_HIGHLY_SKILLED_FLAT_RATE
    gross_tax = progressive_tax + ltr_flat_tax

    foreign_credit = 0.0
    if foreign is not None:
        foreign_credit = cap_foreign_tax_credit(
            foreign.totalForeignTaxCredit,
            foreign.taxableForeignIncome,
            progressive_income,
            progressive_tax,
        )

    total_credits = withholding_credits + dividend_credits + foreign_credit

    return TaxResult(
        employmentType=employment_type,
        grossIncome=gross_income,
        thaiIncomeTotal=income.thaiGrossTotal + income.employmentIncome + income.includedDividendIncome,
        foreignIncomeTotal=income.foreignIncomeTotal,
        taxableForeignIncome=income.taxableForeignIncome,
        expenseMethod=expense_method,
        expenseDeduction=expense_deduction,
        totalAllowances=allowances.total,
        totalDeductions=expense_deduction + deductions.total,
        taxableIncome=taxable_income,
        grossTaxBeforeCredits=gross_tax,
        ltrFlatRateTax=ltr_flat_tax,
        withholdingCredits=withholding_credits,
        dividendCredits=dividend_credits,
        foreignTaxCredits=foreign_credit,
        totalCredits=total_credits,
        netTaxPayable=max(0.0, gross_tax - total_credits),
        refundDue=max(0.0, total_credits - gross_tax),
        effectiveRate=safe_ratio(gross_tax, gross_income),
        allowances=allowances,
        deductions=deductions,
        bracketBreakdown=bracket_breakdown(taxable_income),
        incomeByType=income.byType,
        expenseComparison=expense_comparison,
        foreignIncome=foreign,
        obligations=obligations,
        dividendAdvice=dividend_advice,
        ltrBenefitApplied=ltr_benefit,
    )


# ── Salaried ──────────────────────────────────────────────────────────────

def calculate_salaried_tax(form: SalariedForm) -> TaxResult:
    income = aggregate_income([], employment_income=form.annualIncome)
    expense = calculate_standard_deduction(form.annualIncome)
    allowances, deductions, taxable = _taxable_income(
        form, income.grossIncome, income.grossIncome, expense
    )
    return _assemble(
        employment_type=form.employmentType,
        income=income,
        allowances=allowances,
        deductions=deductions,
        taxable_income=taxable,
        expense_deduction=expense,
        withholding_credits=form.taxWithheld,
    )


# ── Freelancer / sole proprietor ──────────────────────────────────────────

def _calculate_self_employed_tax(
    form: SelfEmployedBase,
    entries: List[ThaiIncomeEntry],
    liberal_sub_type: Optional[str],
) -> TaxResult:
    foreign = analyze_foreign_income(form.foreignIncomeEntries, form.daysInThailand, form.visaType)
    income = aggregate_income(entries, foreign)

    # LTR Highly-Skilled: salary is taxed flat, outside the progressive base
    ltr_flat_rate = has_ltr_flat_rate_benefit(form.visaType)
    if ltr_flat_rate:
        flat_taxed_income = sum(
            e.grossAmount for e in entries if e.incomeType == IncomeType.SALARY.value
        )
        progressive_entries = [e for e in entries if e.incomeType != IncomeType.SALARY.value]
    else:
        flat_taxed_income = 0.0
        progressive_entries = entries

    flat_total, _ = calculate_flat_rate_deductions(progressive_entries, liberal_sub_type)
    actual_total, _ = calculate_actual_expenses(form.actualExpenses)
    _, expense = resolve_expense_deduction(form.expenseMethod, flat_total, actual_total)

    allowances, deductions, taxable = _taxable_income(
        form, income.grossIncome, income.grossIncome - flat_taxed_income, expense
    )
    comparison = compare_expense_deductions(
        progressive_entries, form.actualExpenses, taxable, liberal_sub_type
    )
    obligations = check_all_obligations(entries, form.maritalStatus, form.spouseHasNoIncome)

    return _assemble(
        employment_type=form.employmentType,
        income=income,
        allowances=allowances,
        deductions=deductions,
        taxable_income=taxable,
        expense_deduction=expense,
        withholding_credits=income.thaiWithholdingTotal,
        flat_taxed_income=flat_taxed_income,
        expense_method=form.expenseMethod,
        expense_comparison=comparison,
        foreign=foreign,
        obligations=obligations,
        ltr_benefit=ltr_flat_rate or foreign.ltrExemptionApplied,
    )


def calculate_freelancer_tax(form: FreelancerForm) -> TaxResult:
    return _calculate_self_employed_tax(form, form.thaiIncomeEntries, form.liberalProfessionSubType)


def map_business_entries(form: SoleProprietorForm) -> List[ThaiIncomeEntry]:
    """Unclassified ('other') entries take the income type of the business category."""
    primary = BUSINESS_CATEGORY_TO_INCOME_TYPE[form.businessProfile.businessCategory]
    return [
        entry.model_copy(update={"incomeType": primary})
        if entry.incomeType == IncomeType.OTHER.value
        else entry
        for entry in form.thaiIncomeEntries
    ]


def calculate_sole_proprietor_tax(form: SoleProprietorForm) -> TaxResult:
    sub_type = form.liberalProfessionSubType or form.businessProfile.businessSubCategory
    return _calculate_self_employed_tax(form, map_business_entries(form), sub_type)


# ── Company owner ─────────────────────────────────────────────────────────

def _company_gross_tax(
    form: CompanyOwnerForm,
    employment_income: float,
    dividend_income: float,
) -> float:
    gross = employment_income + dividend_income
    expense = calculate_standard_deduction(employment_income)
    _, _, taxable = _taxable_income(form, gross, gross, expense)
    return calculate_tax(taxable)


def advise_dividend_election(
    form: CompanyOwnerForm,
    employment_income: float,
    dividends: List[DividendEntry],
) -> Optional[DividendAdvice]:
    """Compare including every Thai dividend in PIT against excluding them all.

    Included: the 10 % withholding is credited, so the burden is the PIT.
    Excluded: the withholding is final, so the burden is PIT + withholding.
    Non-Thai dividends keep the taxpayer's own election in both scenarios.
    Returns ``None`` when there is no Thai dividend to elect on.
    """
    thai_amount = sum(d.amount for d in dividends if d.dividendType in _THAI_DIVIDEND_TYPES)
    if thai_amount <= 0:
        return None

    other_included = sum(
        d.amount for d in dividends if d.includeInPIT and d.dividendType not in _THAI_DIVIDEND_TYPES
    )
    thai_withholding = sum(d.withholdingTax for d in dividends if d.dividendType in _THAI_DIVIDEND_TYPES)

    include_burden = _company_gross_tax(form, employment_income, other_included + thai_amount)
    exclude_burden = _company_gross_tax(form, employment_income, other_included) + thai_withholding
    savings = include_burden - exclude_burden

    included, _, credit = split_dividends(dividends)
    return DividendAdvice(
        totalDividendIncome=sum(d.amount for d in dividends),
        taxableDividends=included,
        dividendTaxCredit=credit,
        dividendExclusionSavings=savings,
        optimalDividendStrategy="exclude" if savings >= 0 else "include",
    )


def calculate_company_owner_tax(form: CompanyOwnerForm) -> TaxResult:
    employment = calculate_employment_income(form)
    income = aggregate_income([], employment_income=employment, dividends=form.dividendEntries)
    expense = calculate_standard_deduction(employment)
    allowances, deductions, taxable = _taxable_income(
        form, income.grossIncome, income.grossIncome, expense
    )
    return _assemble(
        employment_type=form.employmentType,
        income=income,
        allowances=allowances,
        deductions=deductions,
        taxable_income=taxable,
        expense_deduction=expense,
        withholding_credits=form.salaryWithholdingTax,
        dividend_credits=income.dividendWithholdingCredit,
        dividend_advice=advise_dividend_election(form, employment, form.dividendEntries),
    )


# ── Public entry point ────────────────────────────────────────────────────

def calculate_tax_result(form: TaxForm) -> TaxResult:
    """Resolve the full tax result for any profile."""
    match form:
        case SalariedForm():
            result = calculate_salaried_tax(form)
        case FreelancerForm():
            result = calculate_freelancer_tax(form)
        case SoleProprietorForm():
            result = calculate_sole_proprietor_tax(form)
        case CompanyOwnerForm():
            result = calculate_company_owner_tax(form)
        case _:
            assert_never(form)

    logger.debug(
        "Resolved %s: gross=%.2f taxable=%.2f tax=%.2f",
        result.employmentType,
        result.grossIncome,
        result.taxableIncome,
        result.grossTaxBeforeCredits,
    )
    return result
