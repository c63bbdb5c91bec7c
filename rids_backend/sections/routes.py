"""
Section entry HTTP routes — one implementation for all eight multi-valued sections.

  GET    /api/staff/rids/{rids_id}/sections/{section_name}
  POST   /api/staff/rids/{rids_id}/sections/{section_name}
  PUT    /api/staff/rids/{rids_id}/sections/{section_name}/{entry_id}
  DELETE /api/staff/rids/{rids_id}/sections/{section_name}/{entry_id}

section_name is the URL name from sections/registry.py (e.g. 'dependents',
'promotion-history'). Bodies are taken as raw JSON objects and validated here
against the section's schema, so a rejected payload surfaces like a storage
constraint violation (500 with the error text) instead of FastAPI's 422.

Updates and deletes match on entry_id AND rids_id together; an entry of
another form is reported as not found and nothing changes.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from rids_backend import store
from rids_backend.auth import Identity, authorize_form_access, require_identity
from rids_backend.database import get_db
from rids_backend.errors import InvalidEntry
from rids_backend.responses import ok
from rids_backend.sections.registry import get_section

router = APIRouter(prefix="/api/staff/rids/{rids_id}/sections", tags=["sections"])
logger = logging.getLogger(__name__)


def _validate(schema: type[BaseModel], body: dict) -> BaseModel:
    """Validate a raw body; violations become one readable InvalidEntry message."""
    try:
        return schema.model_validate(body)
    except ValidationError as exc:
        issues = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            issues.append(f"{field}: {error['msg']}" if field else error["msg"])
        raise InvalidEntry("; ".join(issues)) from exc


@router.get("/{section_name}")
async def list_section_entries(
    rids_id: str,
    section_name: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    spec = get_section(section_name)
    await authorize_form_access(db, identity, rids_id)
    return ok(await store.list_entries(db, spec, rids_id))


@router.post("/{section_name}", status_code=201)
async def create_section_entry(
    rids_id: str,
    section_name: str,
    body: dict = Body(...),
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    spec = get_section(section_name)
    await authorize_form_access(db, identity, rids_id)
    payload = _validate(spec.create_schema, body)
    entry = await store.create_entry(db, spec, rids_id, payload.model_dump())
    return ok(entry, f"{spec.label} entry created successfully")


@router.put("/{section_name}/{entry_id}")
async def update_section_entry(
    rids_id: str,
    section_name: str,
    entry_id: str,
    body: dict = Body(...),
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Only fields present in the body change; updated_at is always refreshed."""
    spec = get_section(section_name)
    await authorize_form_access(db, identity, rids_id)
    payload = _validate(spec.update_schema, body)
    entry = await store.update_entry(
        db, spec, rids_id, entry_id, payload.model_dump(exclude_unset=True)
    )
    return ok(entry, f"{spec.label} entry updated successfully")


@router.delete("/{section_name}/{entry_id}")
async def delete_section_entry(
    rids_id: str,
    section_name: str,
    entry_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    spec = get_section(section_name)
    await authorize_form_access(db, identity, rids_id)
    await store.delete_entry(db, spec, rids_id, entry_id)
    return ok(None, f"{spec.label} entry deleted successfully")
