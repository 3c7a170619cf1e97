"""Routers for wizard session snapshots:
    PUT     /thai-tax/v1/sessions/{key}
    GET     /thai-tax/v1/sessions/{key}
    DELETE  /thai-tax/v1/sessions/{key}
    POST    /thai-tax/v1/sessions/{key}:calculate

Snapshots are kept in the ``wizard_sessions`` table, or in an in-process
store with the same two-key layout when the database is unavailable.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Response
from sqlalchemy import delete, select

from thaitax.database import get_session
from thaitax.models.db_models import WizardSession
from thaitax.models.schemas import SessionSnapshot, TaxResult
from thaitax.routers.calculations import record_calculation
from thaitax.services.calculation_service import calculate_tax_result
from thaitax.services.session_service import (
    STEP_KEY,
    STORAGE_KEY,
    InvalidSnapshotError,
    dump_snapshot,
    load_snapshot,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/thai-tax/v1",
    tags=["Sessions"],
)

# ── In-memory fallback ────────────────────────────────────────────────────
_memory_store: Dict[str, Dict[str, str]] = {}


async def read_store(key: str) -> Optional[Dict[str, str]]:
    async with get_session() as session:
        if session is None:
            return _memory_store.get(key)
        row = await session.scalar(select(WizardSession).where(WizardSession.session_key == key))
        if row is None:
            return None
        store = {STEP_KEY: str(row.current_step)}
        if row.form_data is not None:
            store[STORAGE_KEY] = row.form_data
        return store


async def write_store(key: str, store: Dict[str, str]) -> None:
    async with get_session() as session:
        if session is None:
            _memory_store[key] = dict(store)
            return
        row = await session.scalar(select(WizardSession).where(WizardSession.session_key == key))
        if row is None:
            row = WizardSession(session_key=key)
            session.add(row)
        row.form_data = store.get(STORAGE_KEY)
        row.current_step = int(store[STEP_KEY])


async def delete_store(key: str) -> bool:
    async with get_session() as session:
        if session is None:
            return _memory_store.pop(key, None) is not None
        result = await session.execute(delete(WizardSession).where(WizardSession.session_key == key))
        return result.rowcount > 0


async def _load_or_404(key: str) -> SessionSnapshot:
    store = await read_store(key)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Session '{key}' not found")
    try:
        return load_snapshot(store)
    except InvalidSnapshotError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


# ── Endpoints ─────────────────────────────────────────────────────────────

@router.put(
    "/sessions/{key}",
    response_model=SessionSnapshot,
    summary="Save a wizard snapshot",
)
async def session_save(key: str, body: Dict[str, Any] = Body(...)) -> SessionSnapshot:
    """Validate ``{formData, currentStep}`` through the snapshot boundary
    and store the normalised form.
    """
    form_data = body.get("formData")
    raw_store = {STEP_KEY: str(body.get("currentStep", 0))}
    if form_data is not None:
        raw_store[STORAGE_KEY] = json.dumps(form_data)

    try:
        snapshot = load_snapshot(raw_store)
    except InvalidSnapshotError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await write_store(key, dump_snapshot(snapshot.formData, snapshot.currentStep))
    logger.info("Saved session %s at step %d", key, snapshot.currentStep)
    return snapshot


@router.get(
    "/sessions/{key}",
    response_model=SessionSnapshot,
    summary="Load a wizard snapshot",
)
async def session_load(key: str) -> SessionSnapshot:
    return await _load_or_404(key)


@router.delete(
    "/sessions/{key}",
    status_code=204,
    summary="Delete a wizard snapshot",
)
async def session_delete(key: str) -> Response:
    if not await delete_store(key):
        raise HTTPException(status_code=404, detail=f"Session '{key}' not found")
    logger.info("Deleted session %s", key)
    return Response(status_code=204)


@router.post(
    "/sessions/{key}:calculate",
    response_model=TaxResult,
    summary="Calculate tax from a stored wizard snapshot",
)
async def session_calculate(key: str) -> TaxResult:
    """Recompute the full result from the stored snapshot alone."""
    snapshot = await _load_or_404(key)
    if snapshot.formData is None:
        raise HTTPException(status_code=422, detail=f"Session '{key}' has no form data")

    result = calculate_tax_result(snapshot.formData)
    await record_calculation(f"/sessions/{key}:calculate", result)
    return result
