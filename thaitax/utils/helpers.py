"""Shared utility functions for input normalisation, date parsing and rounding."""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

# ── Supported date formats (most specific first) ─────────────────────────
_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%fZ",
]

CANONICAL_FORMAT = "%Y-%m-%d"


def parse_date(value: str) -> date:
    """Parse a date string using the accepted format variants.

    Raises ``ValueError`` if the string cannot be parsed.
    """
    value = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(
        f"Invalid date format: '{value}'. Expected YYYY-MM-DD."
    )


def format_date(d: date) -> str:
    """Format a date to the canonical string representation."""
    return d.strftime(CANONICAL_FORMAT)


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


# ── Input normalisation ───────────────────────────────────────────────────

def to_amount(value: Any) -> float:
    """Coerce a monetary input to a non-negative float.

    Missing, malformed, non-finite and negative values all become ``0.0``.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def to_count(value: Any, upper: int | None = None) -> int:
    """Coerce a count to a non-negative int, optionally clamped to *upper*."""
    count = int(to_amount(value))
    if upper is not None:
        count = min(count, upper)
    return count


def to_month(value: Any) -> int:
    """Month 1–12, anything else means "unset" (0)."""
    month = to_count(value)
    return month if 1 <= month <= 12 else 0


# ── Financial helpers ─────────────────────────────────────────────────────

def round_currency(value: float, decimals: int = 2) -> float:
    """Round to *decimals* places (standard banker-friendly rounding)."""
    return round(value, decimals)


def round_half_up(value: float) -> int:
    """Round to the nearest whole baht, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_baht(amount: float) -> str:
    """Whole-baht display string, e.g. ``฿1,800,000``."""
    return f"฿{round_half_up(amount):,}"


def safe_ratio(numerator: float, denominator: float) -> float:
    """``numerator / denominator``, or 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator
