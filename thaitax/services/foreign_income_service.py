"""Foreign income taxability under the 2024+ remittance rules.

An entry is taxable only when ALL hold, checked in this order:
    1. the taxpayer is a Thai tax resident (≥ 180 days in Thailand)
    2. the date earned is known
    3. it was earned on or after 2024-01-01
    4. it has been remitted to Thailand

Holders of the LTR visas listed in ``LTR_FOREIGN_INCOME_EXEMPT_VISAS`` skip
the per-entry test entirely: their foreign income is recorded but never taxed.

The credit reported per entry is the foreign tax paid, i.e. the maximum
potential credit. Capping it against Thai tax is done by the final resolver.

Each classified entry also carries data-quality warnings (future dates, a
remittance dated before the earning, missing country, zero amounts). They
are informational only.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from thaitax.config import settings
from thaitax.models.schemas import (
    ForeignIncomeAnalysis,
    ForeignIncomeEntry,
    ForeignIncomeTaxability,
    VisaType,
)
from thaitax.utils.helpers import is_blank, parse_date

LTR_FOREIGN_INCOME_EXEMPT_VISAS = frozenset({
    VisaType.LTR_WEALTHY_GLOBAL,
    VisaType.LTR_WEALTHY_PENSIONER,
    VisaType.LTR_WORK_FROM_THAILAND,
})


def is_thai_tax_resident(days_in_thailand: int) -> bool:
    return days_in_thailand >= settings.RESIDENCY_DAYS


def describe_residency(days_in_thailand: int) -> Tuple[str, str]:
    """``(status, description)`` for the residency test."""
    if is_thai_tax_resident(days_in_thailand):
        return (
            "Thai Tax Resident",
            f"With {days_in_thailand} days in Thailand ({settings.RESIDENCY_DAYS}+ required), "
            "you are considered a Thai tax resident. Both Thai-sourced income and foreign "
            "income remitted to Thailand may be taxable.",
        )
    return (
        "Non-Resident",
        f"With {days_in_thailand} days in Thailand (less than {settings.RESIDENCY_DAYS}), "
        "you are not a Thai tax resident. Only income earned in Thailand is subject to Thai tax.",
    )


def has_ltr_foreign_income_exemption(visa_type: VisaType) -> bool:
    return visa_type in LTR_FOREIGN_INCOME_EXEMPT_VISAS


def has_ltr_flat_rate_benefit(visa_type: VisaType) -> bool:
    """LTR Highly-Skilled Professionals pay 17 % flat on Thai employment income."""
    return visa_type is VisaType.LTR_HIGHLY_SKILLED


def foreign_income_cutoff() -> date:
    return parse_date(settings.FOREIGN_INCOME_CUTOFF)


def _parse_optional(value: Optional[str], label: str, warnings: List[str]) -> Optional[date]:
    if is_blank(value):
        return None
    try:
        return parse_date(value)
    except ValueError:
        warnings.append(f"{label} is not a valid date")
        return None


def validate_foreign_income_entry(
    entry: ForeignIncomeEntry, today: Optional[date] = None
) -> List[str]:
    """Data problems in *entry*; an empty list means it looks complete."""
    today = today or date.today()
    warnings: List[str] = []

    if entry.amount <= 0:
        warnings.append("Amount must be greater than 0")
    if entry.amountThb <= 0:
        warnings.append("THB amount must be greater than 0")

    earned = _parse_optional(entry.dateEarned, "Date earned", warnings)
    if is_blank(entry.dateEarned):
        warnings.append("Date earned is required")
    elif earned and earned > today:
        warnings.append("Date earned cannot be in the future")

    remitted = _parse_optional(entry.dateRemitted, "Date remitted", warnings)
    if remitted:
        if remitted > today:
            warnings.append("Date remitted cannot be in the future")
        if earned and remitted < earned:
            warnings.append("Date remitted cannot be before date earned")

    if is_blank(entry.country):
        warnings.append("Country is required")

    return warnings


def _not_taxable(entry: ForeignIncomeEntry, code: str, reason: str) -> ForeignIncomeTaxability:
    return ForeignIncomeTaxability(
        entry=entry,
        isTaxable=False,
        reasonCode=code,
        reason=reason,
        taxableAmount=0.0,
        foreignTaxCredit=0.0,
        warnings=validate_foreign_income_entry(entry),
    )


def classify_foreign_income(entry: ForeignIncomeEntry, is_resident: bool) -> ForeignIncomeTaxability:
    """Decide whether a single entry is taxable. Never raises."""
    if not is_resident:
        return _not_taxable(
            entry,
            "not_resident",
            f"Not a Thai tax resident (less than {settings.RESIDENCY_DAYS} days in Thailand)",
        )

    try:
        earned = parse_date(entry.dateEarned)
    except ValueError:
        return _not_taxable(entry, "date_earned_missing", "Date earned not specified")

    cutoff = foreign_income_cutoff()
    if earned < cutoff:
        return _not_taxable(
            entry,
            "earned_before_cutoff",
            f"Income earned before {cutoff:%B} {cutoff.day}, {cutoff.year} - "
            "exempt under pre-2024 rules",
        )

    if is_blank(entry.dateRemitted):
        return _not_taxable(
            entry,
            "not_remitted",
            "Income not remitted to Thailand - not taxable until remitted",
        )

    return ForeignIncomeTaxability(
        entry=entry,
        isTaxable=True,
        reasonCode="taxable",
        reason=f"Income earned in {cutoff.year}+ and remitted to Thailand - fully taxable",
        taxableAmount=entry.amountThb,
        foreignTaxCredit=entry.foreignTaxPaid,
        warnings=validate_foreign_income_entry(entry),
    )


def analyze_foreign_income(
    entries: List[ForeignIncomeEntry],
    days_in_thailand: int,
    visa_type: VisaType = VisaType.REGULAR,
) -> ForeignIncomeAnalysis:
    """Classify every entry and total taxable / non-taxable amounts."""
    ltr_exempt = has_ltr_foreign_income_exemption(visa_type)

    if ltr_exempt:
        results = [
            _not_taxable(entry, "ltr_exempt", "LTR visa holder - foreign income is tax exempt")
            for entry in entries
        ]
    else:
        resident = is_thai_tax_resident(days_in_thailand)
        results = [classify_foreign_income(entry, resident) for entry in entries]

    total_income = sum(r.entry.amountThb for r in results)
    taxable_income = sum(r.taxableAmount for r in results)
    status, description = describe_residency(days_in_thailand)

    return ForeignIncomeAnalysis(
        entries=results,
        totalForeignIncome=total_income,
        taxableForeignIncome=taxable_income,
        nonTaxableForeignIncome=total_income - taxable_income,
        totalForeignTaxPaid=sum(r.entry.foreignTaxPaid for r in results),
        totalForeignTaxCredit=sum(r.foreignTaxCredit for r in results),
        ltrExemptionApplied=ltr_exempt,
        residencyStatus=status,
        residencyDescription=description,
    )
