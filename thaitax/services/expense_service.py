"""Expense deduction: statutory flat rates vs. actual itemised expenses.

Flat rates by Revenue Code section (applied to the *summed* gross per type):
    40(1) salary             50 %, capped at ฿100,000 across all salary entries
    40(5) rental             30 %
    40(6) liberal profession 30 % (60 % for medical, entertainment, sports,
                             author royalties)
    40(7) contractor         40 %
    40(8) business / sales   60 %
    dividend, other, unknown  0 %

Method strategy:
    force_flat    → flat total
    force_actual  → actual total
    auto_compare  → max(flat, actual); ties go to flat
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple, assert_never

from thaitax.config import settings
from thaitax.models.schemas import (
    ActualExpenseBreakdown,
    ExpenseComparisonResult,
    ExpenseDeductionResult,
    ExpenseEntry,
    ExpenseMethod,
    FlatRateBreakdown,
    IncomeType,
    ThaiIncomeEntry,
)
from thaitax.services.tax_service import marginal_rate
from thaitax.utils.helpers import format_baht, is_blank

FLAT_RATE_DEDUCTIONS: Dict[str, float] = {
    IncomeType.SALARY.value: 0.50,
    IncomeType.LIBERAL_PROFESSION.value: 0.30,
    IncomeType.CONTRACTOR.value: 0.40,
    IncomeType.BUSINESS_SALES.value: 0.60,
    IncomeType.RENTAL.value: 0.30,
    IncomeType.DIVIDEND.value: 0.0,
    IncomeType.OTHER.value: 0.0,
}

# Section 40(6) sub-professions
LIBERAL_PROFESSION_RATES: Dict[str, float] = {
    "medical_practice": 0.60,
    "entertainment": 0.60,
    "sports": 0.60,
    "author_royalties": 0.60,
    "legal": 0.30,
    "engineering": 0.30,
    "architecture": 0.30,
    "accounting": 0.30,
    "fine_arts": 0.30,
    "consulting": 0.30,
    "other_liberal": 0.30,
}

Choice = Literal["flat", "actual"]


def flat_rate_for(income_type: str, liberal_sub_type: Optional[str] = None) -> float:
    """Flat deduction rate for *income_type*; unknown types get 0."""
    if income_type == IncomeType.LIBERAL_PROFESSION.value and liberal_sub_type:
        return LIBERAL_PROFESSION_RATES.get(
            liberal_sub_type, FLAT_RATE_DEDUCTIONS[IncomeType.LIBERAL_PROFESSION.value]
        )
    return FLAT_RATE_DEDUCTIONS.get(income_type, 0.0)


# ── Totals ────────────────────────────────────────────────────────────────

def calculate_flat_rate_deductions(
    entries: List[ThaiIncomeEntry],
    liberal_sub_type: Optional[str] = None,
) -> Tuple[float, List[FlatRateBreakdown]]:
    """Flat-rate deduction per income type, plus the overall total.

    The rate is applied to each type's summed gross so the salary cap is
    applied once, in aggregate.
    """
    gross_by_type: dict[str, float] = {}
    for entry in entries:
        gross_by_type[entry.incomeType] = gross_by_type.get(entry.incomeType, 0.0) + entry.grossAmount

    breakdown: list[FlatRateBreakdown] = []
    total = 0.0
    for income_type, gross in gross_by_type.items():
        rate = flat_rate_for(income_type, liberal_sub_type)
        deduction = gross * rate
        if income_type == IncomeType.SALARY.value:
            deduction = min(deduction, settings.MAX_STANDARD_DEDUCTION)
        breakdown.append(
            FlatRateBreakdown(
                incomeType=income_type,
                grossAmount=gross,
                rate=rate,
                deduction=deduction,
            )
        )
        total += deduction

    return total, breakdown


def calculate_actual_expenses(
    expenses: List[ExpenseEntry],
) -> Tuple[float, List[ActualExpenseBreakdown]]:
    """Actual expenses summed by category.

    A category only counts as receipted when every entry in it has a receipt.
    """
    by_category: dict[str, tuple[float, bool]] = {}
    for expense in expenses:
        amount, receipted = by_category.get(expense.category, (0.0, True))
        by_category[expense.category] = (amount + expense.amount, receipted and expense.hasReceipt)

    breakdown = [
        ActualExpenseBreakdown(category=category, amount=amount, hasReceipts=receipted)
        for category, (amount, receipted) in by_category.items()
    ]
    return sum(item.amount for item in breakdown), breakdown


# ── Validation & wording ──────────────────────────────────────────────────

def validate_expense_entry(expense: ExpenseEntry) -> List[str]:
    warnings: List[str] = []
    if expense.amount <= 0:
        warnings.append("Amount must be greater than 0")
    if is_blank(expense.description):
        warnings.append("Description is required")
    return warnings


def recommendation_text(comparison: ExpenseComparisonResult) -> str:
    flat = comparison.flatRateDeduction
    actual = comparison.actualDeduction
    savings = format_baht(comparison.taxSavings)
    if comparison.recommended == "flat":
        return (
            f"The flat-rate deduction ({format_baht(flat)}) is higher than your actual "
            f"expenses ({format_baht(actual)}) by {format_baht(flat - actual)}. Using "
            f"flat-rate could save you approximately {savings} in taxes."
        )
    return (
        f"Your actual expenses ({format_baht(actual)}) are higher than the flat-rate "
        f"deduction ({format_baht(flat)}) by {format_baht(actual - flat)}. Using actual "
        f"expenses could save you approximately {savings} in taxes, but you'll need "
        "documentation."
    )


# ── Resolution ────────────────────────────────────────────────────────────

def resolve_expense_deduction(
    method: ExpenseMethod,
    flat_total: float,
    actual_total: float,
) -> Tuple[Choice, float]:
    """Apply the expense-method strategy to the two totals."""
    if method is ExpenseMethod.FORCE_FLAT:
        return "flat", flat_total
    if method is ExpenseMethod.FORCE_ACTUAL:
        return "actual", actual_total
    if method is ExpenseMethod.AUTO_COMPARE:
        if flat_total >= actual_total:
            return "flat", flat_total
        return "actual", actual_total
    assert_never(method)


def compare_expense_deductions(
    entries: List[ThaiIncomeEntry],
    expenses: List[ExpenseEntry],
    taxable_income: float,
    liberal_sub_type: Optional[str] = None,
) -> ExpenseComparisonResult:
    """Flat vs. actual, with the tax difference at the current marginal bracket."""
    flat_total, flat_breakdown = calculate_flat_rate_deductions(entries, liberal_sub_type)
    actual_total, actual_breakdown = calculate_actual_expenses(expenses)

    rate = marginal_rate(taxable_income)
    recommended, _ = resolve_expense_deduction(ExpenseMethod.AUTO_COMPARE, flat_total, actual_total)
    warnings = [
        f"Expense {position} ({expense.category}): {problem}"
        for position, expense in enumerate(expenses, start=1)
        for problem in validate_expense_entry(expense)
    ]

    comparison = ExpenseComparisonResult(
        flatRateDeduction=flat_total,
        actualDeduction=actual_total,
        recommended=recommended,
        taxSavings=abs(flat_total - actual_total) * rate,
        bracketRate=rate,
        flatBreakdown=flat_breakdown,
        actualBreakdown=actual_breakdown,
        warnings=warnings,
    )
    return comparison.model_copy(update={"recommendationText": recommendation_text(comparison)})


def calculate_expense_deduction(
    entries: List[ThaiIncomeEntry],
    expenses: List[ExpenseEntry],
    method: ExpenseMethod,
    liberal_sub_type: Optional[str] = None,
    taxable_income: Optional[float] = None,
) -> ExpenseDeductionResult:
    """Resolve the deduction for *method* and attach the comparison.

    When *taxable_income* is not given, gross income minus the applied
    deduction is used to pick the marginal bracket.
    """
    flat_total, _ = calculate_flat_rate_deductions(entries, liberal_sub_type)
    actual_total, _ = calculate_actual_expenses(expenses)
    applied, deduction = resolve_expense_deduction(method, flat_total, actual_total)

    if taxable_income is None:
        gross = sum(entry.grossAmount for entry in entries)
        taxable_income = max(0.0, gross - deduction)

    return ExpenseDeductionResult(
        method=method,
        applied=applied,
        deduction=deduction,
        comparison=compare_expense_deductions(entries, expenses, taxable_income, liberal_sub_type),
    )
