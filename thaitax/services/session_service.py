"""Wizard snapshot boundary.

A snapshot is stored as two string values in a key-value store:

    thai_tax_wizard_data   JSON form-data blob (one TaxForm variant)
    thai_tax_wizard_step   current wizard step as an integer string

Loading validates the blob back into the tagged union. Older blobs used
``self-employed`` / ``business`` as the employment type, and an unselected
type is stored as ``''``; both are mapped onto the current variants.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from thaitax.models.schemas import SessionSnapshot, TaxForm

logger = logging.getLogger(__name__)

STORAGE_KEY = "thai_tax_wizard_data"
STEP_KEY = "thai_tax_wizard_step"

LEGACY_EMPLOYMENT_TYPES = {
    "": "salaried",
    "self-employed": "freelancer",
    "business": "sole_proprietor",
}

_form_adapter: TypeAdapter[TaxForm] = TypeAdapter(TaxForm)


class InvalidSnapshotError(ValueError):
    """The stored form-data blob cannot be restored."""


def dump_snapshot(form: Optional[TaxForm], step: int = 0) -> dict[str, str]:
    store = {STEP_KEY: str(max(0, step))}
    if form is not None:
        store[STORAGE_KEY] = form.model_dump_json()
    return store


def parse_step(raw: Any) -> int:
    """Stored step as a non-negative int; anything unreadable is step 0."""
    try:
        step = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(0, step)


def parse_form_data(data: Any) -> TaxForm:
    """Validate a decoded form-data object into its TaxForm variant."""
    if not isinstance(data, dict):
        raise InvalidSnapshotError("Form data must be a JSON object")

    data = dict(data)
    employment_type = data.get("employmentType") or ""
    if not isinstance(employment_type, str):
        raise InvalidSnapshotError(
            f"Employment type must be a string, got {type(employment_type).__name__}"
        )
    data["employmentType"] = LEGACY_EMPLOYMENT_TYPES.get(employment_type, employment_type)

    try:
        return _form_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvalidSnapshotError(
            f"Invalid form data for employment type {employment_type!r}: "
            f"{exc.error_count()} validation error(s)"
        ) from exc


def load_snapshot(store: Mapping[str, Optional[str]]) -> SessionSnapshot:
    """Restore a snapshot from *store*.

    A missing blob gives an empty snapshot. Raises ``InvalidSnapshotError``
    when the blob is not JSON or does not match any form variant.
    """
    step = parse_step(store.get(STEP_KEY))
    raw = store.get(STORAGE_KEY)
    if not raw:
        return SessionSnapshot(formData=None, currentStep=step)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidSnapshotError(f"Form data is not valid JSON: {exc.msg}") from exc

    form = parse_form_data(data)
    logger.debug("Restored %s snapshot at step %d", form.employmentType, step)
    return SessionSnapshot(formData=form, currentStep=step)
