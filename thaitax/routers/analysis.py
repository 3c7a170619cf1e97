"""Routers for the individual analysis endpoints:
    POST  /thai-tax/v1/expenses:compare
    POST  /thai-tax/v1/foreign-income:classify
    POST  /thai-tax/v1/obligations:check
"""

from __future__ import annotations
import logging
from fastapi import APIRouter
from thaitax.models.schemas import (
    ExpenseCompareRequest,
    ExpenseDeductionResult,
    ForeignIncomeAnalysis,
    ForeignIncomeRequest,
    ObligationCheckResult,
    ObligationRequest,
)
from thaitax.services.expense_service import calculate_expense_deduction
from thaitax.services.foreign_income_service import analyze_foreign_income
from thaitax.services.obligation_service import check_all_obligations

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/thai-tax/v1",
    tags=["Analysis"],
)


@router.post(
    "/expenses:compare",
    response_model=ExpenseDeductionResult,
    summary="Compare flat-rate and actual expense deductions",
)
async def expenses_compare(body: ExpenseCompareRequest) -> ExpenseDeductionResult:
    """Apply the expense method and report the flat vs. actual comparison,
    with the tax saved at the marginal bracket rate.
    """
    result = calculate_expense_deduction(
        entries=body.thaiIncomeEntries,
        expenses=body.actualExpenses,
        method=body.expenseMethod,
        liberal_sub_type=body.liberalProfessionSubType,
        taxable_income=body.taxableIncome,
    )
    logger.info(
        "Expense comparison: method=%s applied=%s deduction=%.2f",
        body.expenseMethod.value,
        result.applied,
        result.deduction,
    )
    return result


@router.post(
    "/foreign-income:classify",
    response_model=ForeignIncomeAnalysis,
    summary="Classify foreign income under the 2024 remittance rules",
)
async def foreign_income_classify(body: ForeignIncomeRequest) -> ForeignIncomeAnalysis:
    return analyze_foreign_income(body.foreignIncomeEntries, body.daysInThailand, body.visaType)


@router.post(
    "/obligations:check",
    response_model=ObligationCheckResult,
    summary="Check PND94 and VAT registration obligations",
)
async def obligations_check(body: ObligationRequest) -> ObligationCheckResult:
    result = check_all_obligations(
        body.thaiIncomeEntries, body.maritalStatus, body.spouseHasNoIncome
    )
    if result.hasAnyObligation:
        logger.info("Obligations found: %s", "; ".join(result.urgentItems))
    return result
