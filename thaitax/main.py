"""FastAPI application entry point.

Starts the Thai Personal Income Tax API on port 5477.

Usage:
    uvicorn thaitax.main:app --host 0.0.0.0 --port 5477 --reload
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from thaitax.config import settings
from thaitax.database import close_db, init_db, is_db_available
from thaitax.routers import analysis, calculations, sessions

# ── Logging ──────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan (startup + shutdown) ────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting Thai Tax API (tax year %s) on port %s …", settings.TAX_YEAR, settings.APP_PORT
    )
    await init_db()
    yield
    await close_db()
    logger.info("Application shutdown complete.")


# ── Application factory ──────────────────────────────────────────────────

app = FastAPI(
    title="Thai Personal Income Tax API",
    description=(
        "Estimates Thai personal income tax for salaried employees, "
        "freelancers, sole proprietors and company owners.  Covers the "
        "progressive bracket schedule, flat-rate vs. actual expense "
        "deductions, 2024 foreign-income remittance rules, PND94 and VAT "
        "registration triggers, and wizard session snapshots."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-level timing middleware ───────────────────────────────────────

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
    return response


# ── Global exception handler ─────────────────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please check the logs."},
    )


# ── Register routers ─────────────────────────────────────────────────────
app.include_router(calculations.router)
app.include_router(analysis.router)
app.include_router(sessions.router)


# ── Health check ──────────────────────────────────────────────────────────

@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "port": settings.APP_PORT,
        "taxYear": settings.TAX_YEAR,
        "database": is_db_available(),
    }


# ── Dev entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "thaitax.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=True,
    )
