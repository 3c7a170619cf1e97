"""Personal allowances and capped deductions.

Allowances
    personal 60,000 · spouse 60,000 (married, spouse without income)
    senior 190,000 (65+) · child 30,000 (+30,000 for 2nd+ child born 2018+)
    parent 30,000 each, at most 4

Deductions (claim flag off → 0, otherwise min(amount, cap))
    social security 9,000 · life insurance 100,000 · health insurance 25,000
    pension / provident / RMF 500,000 each · SSF 200,000
    donations 10 % of assessable income
"""

from __future__ import annotations

from typing import List

from thaitax.config import settings
from thaitax.models.schemas import (
    AllowanceBreakdown,
    ChildData,
    DeductionBreakdown,
    TaxpayerBase,
)


def _claim(flag: bool, amount: float, cap: float) -> float:
    return min(amount, cap) if flag else 0.0


def calculate_child_allowance(children: List[ChildData]) -> float:
    """Base allowance per child, plus the bonus for the 2nd-or-later child
    born in or after the bonus year.
    """
    total = 0.0
    for index, child in enumerate(children):
        total += settings.CHILD_ALLOWANCE_BASE
        if index >= 1 and child.birthYear >= settings.CHILD_BONUS_BIRTH_YEAR:
            total += settings.CHILD_ALLOWANCE_BONUS
    return total


def calculate_parent_allowance(number_of_parents: int) -> float:
    eligible = max(0, min(number_of_parents, settings.MAX_PARENTS))
    return eligible * settings.PARENT_ALLOWANCE


def calculate_allowances(form: TaxpayerBase) -> AllowanceBreakdown:
    """Family allowances for any form variant."""
    personal = settings.PERSONAL_ALLOWANCE
    spouse = settings.SPOUSE_ALLOWANCE if form.spouseQualifies else 0.0
    senior = settings.SENIOR_ALLOWANCE if form.isAge65OrOlder else 0.0
    child = calculate_child_allowance(form.children)
    parent = calculate_parent_allowance(form.numberOfParents)

    return AllowanceBreakdown(
        personalAllowance=personal,
        spouseAllowance=spouse,
        seniorAllowance=senior,
        childAllowance=child,
        parentAllowance=parent,
        total=personal + spouse + senior + child + parent,
    )


def calculate_donation_cap(assessable_income: float) -> float:
    """Donations are limited to 10 % of total assessable income."""
    return max(0.0, assessable_income) * settings.MAX_DONATION_PERCENT


def calculate_deductions(form: TaxpayerBase, assessable_income: float) -> DeductionBreakdown:
    """Capped insurance / fund / donation deductions.

    *assessable_income* must be the same gross figure the final tax is
    computed from, since it sets the donation cap.
    """
    social_security = _claim(
        form.includeSocialSecurity, form.socialSecurityContribution, settings.MAX_SOCIAL_SECURITY
    )
    life = _claim(form.hasLifeInsurance, form.lifeInsurance, settings.MAX_LIFE_INSURANCE)
    health = _claim(form.hasHealthInsurance, form.healthInsurance, settings.MAX_HEALTH_INSURANCE)
    pension = _claim(form.hasPensionFund, form.pensionFund, settings.MAX_PENSION_FUND)
    provident = _claim(form.hasProvidentFund, form.providentFund, settings.MAX_PROVIDENT_FUND)
    rmf = _claim(form.hasRMF, form.rmf, settings.MAX_RMF)
    ssf = _claim(form.hasSSF, form.ssf, settings.MAX_SSF)

    donation_cap = calculate_donation_cap(assessable_income)
    donations = _claim(form.hasDonations, form.donations, donation_cap)

    retirement_total = pension + provident + rmf + ssf
    total = social_security + life + health + retirement_total + donations

    return DeductionBreakdown(
        socialSecurity=social_security,
        lifeInsurance=life,
        healthInsurance=health,
        pensionFund=pension,
        providentFund=provident,
        rmf=rmf,
        ssf=ssf,
        donations=donations,
        donationCap=donation_cap,
        retirementTotal=retirement_total,
        exceedsCombinedRetirementCap=retirement_total > settings.COMBINED_RETIREMENT_CAP,
        total=total,
    )


def calculate_standard_deduction(employment_income: float) -> float:
    """Employment-income expense deduction: 50 % of income, max ฿100,000."""
    return min(
        max(0.0, employment_income) * settings.STANDARD_DEDUCTION_RATE,
        settings.MAX_STANDARD_DEDUCTION,
    )
