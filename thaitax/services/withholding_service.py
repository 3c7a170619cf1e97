"""Monthly salary withholding estimate.

Annual income is projected from the monthly figures and taxed like a
salaried return; the monthly withholding is simply the annual tax / 12.

    basic     standard deduction + personal allowance + social security
    detailed  every allowance and capped deduction
"""

from __future__ import annotations

import logging

from thaitax.config import settings
from thaitax.models.schemas import MonthlyWithholdingRequest, MonthlyWithholdingResult
from thaitax.services.allowance_service import (
    calculate_allowances,
    calculate_deductions,
    calculate_standard_deduction,
)
from thaitax.services.tax_service import calculate_tax
from thaitax.utils.helpers import safe_ratio

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


def project_annual_income(request: MonthlyWithholdingRequest) -> float:
    """A full year of variable months, or fixed salary × 12 plus extras."""
    if request.incomeType == "variable" and len(request.variableIncome) == MONTHS_PER_YEAR:
        return sum(
            month.salary + month.bonus + month.housingAllowance + month.otherIncome
            for month in request.variableIncome
        )
    return request.monthlySalary * MONTHS_PER_YEAR + request.annualBonus + request.annualOtherIncome


def estimate_monthly_withholding(request: MonthlyWithholdingRequest) -> MonthlyWithholdingResult:
    annual_income = project_annual_income(request)
    standard_deduction = calculate_standard_deduction(annual_income)
    personal_allowance = settings.PERSONAL_ALLOWANCE

    if request.estimateType == "detailed":
        allowances = calculate_allowances(request)
        deductions = calculate_deductions(request, annual_income)
        social_security = deductions.socialSecurity
        total_deductions = standard_deduction + allowances.total + deductions.total
    else:
        social_security = (
            min(request.socialSecurityContribution, settings.MAX_SOCIAL_SECURITY)
            if request.includeSocialSecurity
            else 0.0
        )
        total_deductions = standard_deduction + personal_allowance + social_security

    taxable_income = max(0.0, annual_income - total_deductions)
    annual_tax = calculate_tax(taxable_income)

    logger.debug(
        "Monthly estimate (%s): annual=%.2f taxable=%.2f tax=%.2f",
        request.estimateType,
        annual_income,
        taxable_income,
        annual_tax,
    )

    return MonthlyWithholdingResult(
        annualIncome=annual_income,
        standardDeduction=standard_deduction,
        personalAllowance=personal_allowance,
        socialSecurity=social_security,
        totalDeductions=total_deductions,
        taxableIncome=taxable_income,
        annualTax=annual_tax,
        monthlyWithholding=annual_tax / MONTHS_PER_YEAR,
        effectiveRate=safe_ratio(annual_tax, annual_income),
    )
