"""Statutory filing triggers: PND94 mid-year return and VAT registration.

PND94
    Half-year income = gross of 40(5)–40(8) entries received January–June
    (salary 40(1) never counts). Required when it strictly exceeds ฿60,000,
    or ฿120,000 for a married filer whose spouse has no income.
    Provisional tax = half of the tax on the doubled half-year income after a
    50 % (max ฿100,000) expense deduction and the personal (+ spouse)
    allowance, rounded to whole baht.

VAT
    Turnover = gross of every Thai entry. Registration is required at
    ≥ ฿1,800,000 and must happen within 30 days of crossing the threshold.
"""

from __future__ import annotations

from typing import List, Optional

from thaitax.config import settings
from thaitax.models.schemas import (
    IncomeType,
    ObligationCheckResult,
    PND94Result,
    ThaiIncomeEntry,
    VATResult,
)
from thaitax.services.tax_service import calculate_tax
from thaitax.utils.helpers import format_baht, round_half_up

PND94_QUALIFYING_INCOME_TYPES = frozenset({
    IncomeType.RENTAL.value,
    IncomeType.LIBERAL_PROFESSION.value,
    IncomeType.CONTRACTOR.value,
    IncomeType.BUSINESS_SALES.value,
})


def is_pnd94_qualifying(income_type: str) -> bool:
    return income_type in PND94_QUALIFYING_INCOME_TYPES


# ── PND94 ─────────────────────────────────────────────────────────────────

def calculate_half_year_income(entries: List[ThaiIncomeEntry]) -> float:
    return sum(
        entry.grossAmount
        for entry in entries
        if is_pnd94_qualifying(entry.incomeType) and 1 <= entry.monthReceived <= 6
    )


def pnd94_threshold(spouse_qualifies: bool) -> float:
    if spouse_qualifies:
        return settings.PND94_THRESHOLD_SPOUSE_NO_INCOME
    return settings.PND94_THRESHOLD_SINGLE


def calculate_provisional_tax(half_year_income: float, spouse_qualifies: bool = False) -> int:
    """Half of the projected full-year tax, rounded to whole baht."""
    annual_income = half_year_income * 2
    expense_deduction = min(
        annual_income * settings.STANDARD_DEDUCTION_RATE, settings.MAX_STANDARD_DEDUCTION
    )
    allowances = settings.PERSONAL_ALLOWANCE
    if spouse_qualifies:
        allowances += settings.SPOUSE_ALLOWANCE

    taxable_income = max(0.0, annual_income - expense_deduction - allowances)
    return round_half_up(calculate_tax(taxable_income) / 2)


def pnd94_summary(result: PND94Result) -> str:
    income = format_baht(result.halfYearIncome)
    threshold = format_baht(result.threshold)
    if not result.required:
        return (
            f"PND94 filing is not required. Your Jan-Jun income ({income}) does not "
            f"exceed the threshold of {threshold}."
        )
    return (
        f"PND94 mid-year filing is required. Your Jan-Jun qualifying income ({income}) "
        f"exceeds {threshold}. Estimated provisional tax: "
        f"{format_baht(result.provisionalTax)}. Due by {result.dueDate}."
    )


def check_pnd94_obligation(
    entries: List[ThaiIncomeEntry],
    marital_status: str = "",
    spouse_has_no_income: bool = False,
) -> PND94Result:
    spouse_qualifies = marital_status == "married" and spouse_has_no_income
    half_year_income = calculate_half_year_income(entries)
    threshold = pnd94_threshold(spouse_qualifies)
    required = half_year_income > threshold

    result = PND94Result(
        required=required,
        halfYearIncome=half_year_income,
        threshold=threshold,
        provisionalTax=calculate_provisional_tax(half_year_income, spouse_qualifies) if required else 0,
        dueDate=settings.PND94_DUE_DATE,
    )
    return result.model_copy(update={"summary": pnd94_summary(result)})


# ── VAT ───────────────────────────────────────────────────────────────────

def calculate_annual_turnover(entries: List[ThaiIncomeEntry]) -> float:
    return sum(entry.grossAmount for entry in entries)


def find_threshold_crossed_month(entries: List[ThaiIncomeEntry], threshold: float) -> Optional[int]:
    """First month whose cumulative dated turnover reaches *threshold*.

    Entries without a month are ignored, so ``None`` means either the
    threshold was never reached or the crossing cannot be dated.
    """
    by_month = [0.0] * 13
    for entry in entries:
        if entry.monthReceived:
            by_month[entry.monthReceived] += entry.grossAmount

    running = 0.0
    for month in range(1, 13):
        running += by_month[month]
        if running >= threshold:
            return month
    return None


def vat_summary(result: VATResult) -> str:
    turnover = format_baht(result.turnover)
    threshold = format_baht(result.threshold)
    if not result.required:
        return (
            f"VAT registration is not required. Your annual turnover ({turnover}) "
            f"is below the {threshold} threshold."
        )
    return (
        f"VAT registration is required. Your annual turnover ({turnover}) exceeds "
        f"{threshold}. You must register within {result.mustRegisterWithinDays} days "
        "of exceeding the threshold."
    )


def check_vat_registration(entries: List[ThaiIncomeEntry]) -> VATResult:
    turnover = calculate_annual_turnover(entries)
    threshold = settings.VAT_REGISTRATION_THRESHOLD
    required = turnover >= threshold

    result = VATResult(
        required=required,
        turnover=turnover,
        threshold=threshold,
        mustRegisterWithinDays=settings.VAT_REGISTRATION_DAYS if required else 0,
        thresholdCrossedMonth=find_threshold_crossed_month(entries, threshold) if required else None,
    )
    return result.model_copy(update={"summary": vat_summary(result)})


# ── Combined ──────────────────────────────────────────────────────────────

def check_all_obligations(
    entries: List[ThaiIncomeEntry],
    marital_status: str = "",
    spouse_has_no_income: bool = False,
) -> ObligationCheckResult:
    pnd94 = check_pnd94_obligation(entries, marital_status, spouse_has_no_income)
    vat = check_vat_registration(entries)

    urgent_items: list[str] = []
    if pnd94.required:
        urgent_items.append(f"PND94 filing due by {pnd94.dueDate}")
    if vat.required:
        urgent_items.append(
            f"VAT registration required within {vat.mustRegisterWithinDays} days"
        )

    return ObligationCheckResult(
        pnd94=pnd94,
        vat=vat,
        hasAnyObligation=pnd94.required or vat.required,
        urgentItems=urgent_items,
    )
