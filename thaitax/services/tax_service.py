"""Thai personal income-tax bracket calculations.

Tax Brackets (progressive, marginal):
    ฿0 – ฿150,000              → 0 %
    ฿150,001 – ฿300,000        → 5 %
    ฿300,001 – ฿500,000        → 10 %
    ฿500,001 – ฿750,000        → 15 %
    ฿750,001 – ฿1,000,000      → 20 %
    ฿1,000,001 – ฿2,000,000    → 25 %
    ฿2,000,001 – ฿5,000,000    → 30 %
    Above ฿5,000,000            → 35 %

No rounding happens here; callers round for display.
"""

from __future__ import annotations

from typing import List

from thaitax.models.schemas import BracketSlice

# Bracket boundaries and marginal rates
_BRACKETS: list[tuple[float, float, float, str]] = [
    # (lower_bound, upper_bound, marginal_rate, label)
    (0.0,         150_000.0,    0.00, "0-150k"),
    (150_000.0,   300_000.0,    0.05, "150k-300k"),
    (300_000.0,   500_000.0,    0.10, "300k-500k"),
    (500_000.0,   750_000.0,    0.15, "500k-750k"),
    (750_000.0,   1_000_000.0,  0.20, "750k-1M"),
    (1_000_000.0, 2_000_000.0,  0.25, "1M-2M"),
    (2_000_000.0, 5_000_000.0,  0.30, "2M-5M"),
    (5_000_000.0, float("inf"), 0.35, "5M+"),
]


def calculate_tax(taxable_income: float) -> float:
    """Compute tax using the Thai progressive brackets.

    Parameters
    ----------
    taxable_income:
        Annual taxable income in THB. Values ≤ 0 yield 0.

    Returns
    -------
    float
        Total tax liability in THB (unrounded).
    """
    if taxable_income <= 0:
        return 0.0

    tax = 0.0
    for lower, upper, rate, _ in _BRACKETS:
        if taxable_income <= lower:
            break
        taxable_in_bracket = min(taxable_income, upper) - lower
        tax += taxable_in_bracket * rate

    return tax


def marginal_rate(taxable_income: float) -> float:
    """Rate of the bracket that *taxable_income* falls in (upper bounds inclusive)."""
    for _, upper, rate, _ in _BRACKETS:
        if taxable_income <= upper:
            return rate
    return _BRACKETS[-1][2]


def bracket_breakdown(taxable_income: float) -> List[BracketSlice]:
    """Per-bracket slices of *taxable_income*, stopping at the last bracket used."""
    slices: list[BracketSlice] = []
    if taxable_income <= 0:
        return slices

    for lower, upper, rate, label in _BRACKETS:
        if taxable_income <= lower:
            break
        amount = min(taxable_income, upper) - lower
        slices.append(
            BracketSlice(
                label=label,
                lower=lower,
                upper=None if upper == float("inf") else upper,
                rate=rate,
                taxableAmount=amount,
                tax=amount * rate,
            )
        )
    return slices
