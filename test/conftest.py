# Test type: Configuration
# Validation to be executed: Shared fixtures for all test modules
# Command: pytest test/ -v (this file is auto-loaded by pytest)

"""Shared pytest fixtures for the Thai tax engine test suite."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from thaitax.main import app
from thaitax.routers import sessions


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    """Async HTTP client bound to the FastAPI app (no real server needed).

    The lifespan is not run, so no database is connected and the session
    endpoints use the in-memory store.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    sessions._memory_store.clear()


# ── Sample data fixtures ─────────────────────────────────────────────────

@pytest.fixture
def freelancer_entries():
    """Mixed Thai income for a freelancer: two contractor jobs and a royalty."""
    return [
        {"id": "1", "grossAmount": 300_000, "incomeType": "contractor_40_7",
         "withholdingAmount": 9_000, "monthReceived": 2, "payerName": "Acme Co"},
        {"id": "2", "grossAmount": 200_000, "incomeType": "contractor_40_7",
         "withholdingAmount": 6_000, "monthReceived": 9, "payerName": "Beta Ltd"},
        {"id": "3", "grossAmount": 100_000, "incomeType": "liberal_profession_40_6",
         "withholdingAmount": 3_000, "monthReceived": 4, "payerName": "Gamma Press"},
    ]


@pytest.fixture
def foreign_entries():
    """One taxable remitted 2024 entry, one pre-2024, one not remitted."""
    return [
        {"id": "f1", "amount": 5_000, "currency": "USD", "amountThb": 180_000,
         "dateEarned": "2024-03-15", "dateRemitted": "2024-04-01", "foreignTaxPaid": 20_000},
        {"id": "f2", "amount": 3_000, "currency": "USD", "amountThb": 100_000,
         "dateEarned": "2023-06-01", "dateRemitted": "2024-02-01", "foreignTaxPaid": 10_000},
        {"id": "f3", "amount": 2_000, "currency": "EUR", "amountThb": 75_000,
         "dateEarned": "2024-05-01", "dateRemitted": None, "foreignTaxPaid": 5_000},
    ]


@pytest.fixture
def salaried_form_data():
    return {
        "employmentType": "salaried",
        "annualIncome": 600_000,
        "taxWithheld": 10_000,
        "maritalStatus": "single",
        "daysInThailand": 365,
    }
