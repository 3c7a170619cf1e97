"""Routers for tax calculation endpoints:
    POST  /thai-tax/v1/tax:calculate
    POST  /thai-tax/v1/tax:brackets
    POST  /thai-tax/v1/withholding:monthly
"""

from __future__ import annotations
import json
import logging
from fastapi import APIRouter
from thaitax.database import get_session
from thaitax.models.db_models import CalculationAudit
from thaitax.models.schemas import (
    BracketRequest,
    BracketResponse,
    MonthlyWithholdingRequest,
    MonthlyWithholdingResult,
    TaxCalculationRequest,
    TaxResult,
)
from thaitax.services.calculation_service import calculate_tax_result
from thaitax.services.tax_service import bracket_breakdown, calculate_tax, marginal_rate
from thaitax.services.withholding_service import estimate_monthly_withholding
from thaitax.utils.helpers import round_currency

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/thai-tax/v1",
    tags=["Tax"],
)


async def record_calculation(endpoint: str, result: TaxResult) -> None:
    """Persist a calculation audit row when the database is available."""
    async with get_session() as session:
        if session is not None:
            audit = CalculationAudit(
                endpoint=endpoint,
                employment_type=result.employmentType,
                gross_income=round_currency(result.grossIncome),
                net_tax_payable=round_currency(result.netTaxPayable),
                summary=json.dumps({
                    "taxableIncome": round_currency(result.taxableIncome),
                    "grossTax": round_currency(result.grossTaxBeforeCredits),
                    "totalCredits": round_currency(result.totalCredits),
                    "refundDue": round_currency(result.refundDue),
                }),
            )
            session.add(audit)


# ── 1. Full tax calculation ──────────────────────────────────────────────

@router.post(
    "/tax:calculate",
    response_model=TaxResult,
    summary="Calculate annual personal income tax for any employment profile",
)
async def tax_calculate(body: TaxCalculationRequest) -> TaxResult:
    """Resolve taxable income, progressive tax, credits and filing
    obligations for the submitted wizard form data.
    """
    result = calculate_tax_result(body.formData)

    logger.info(
        "Calculated %s: gross=%.2f net=%.2f refund=%.2f",
        result.employmentType,
        result.grossIncome,
        result.netTaxPayable,
        result.refundDue,
    )
    await record_calculation("/tax:calculate", result)
    return result


# ── 2. Bracket breakdown ─────────────────────────────────────────────────

@router.post(
    "/tax:brackets",
    response_model=BracketResponse,
    summary="Progressive tax and per-bracket breakdown for a taxable income",
)
async def tax_brackets(body: BracketRequest) -> BracketResponse:
    return BracketResponse(
        taxableIncome=body.taxableIncome,
        tax=calculate_tax(body.taxableIncome),
        marginalRate=marginal_rate(body.taxableIncome),
        breakdown=bracket_breakdown(body.taxableIncome),
    )


# ── 3. Monthly withholding estimate ──────────────────────────────────────

@router.post(
    "/withholding:monthly",
    response_model=MonthlyWithholdingResult,
    summary="Estimate monthly salary withholding",
    tags=["Withholding"],
)
async def withholding_monthly(body: MonthlyWithholdingRequest) -> MonthlyWithholdingResult:
    """Project annual salary income from fixed or variable monthly pay and
    spread the resulting annual tax over 12 months.
    """
    return estimate_monthly_withholding(body)
