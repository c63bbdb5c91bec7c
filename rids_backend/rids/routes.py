"""
RIDS form HTTP routes — /api/staff/rids

  GET    /api/staff/rids                      paginated list (status, company, search)
  POST   /api/staff/rids                      create draft form
  GET    /api/staff/rids/{rids_id}            form + every section's entries
  PUT    /api/staff/rids/{rids_id}            update form-level section fields
  DELETE /api/staff/rids/{rids_id}            delete a draft (entries cascade)
  PUT    /api/staff/rids/{rids_id}/submit     draft|rejected → submitted
  PUT    /api/staff/rids/{rids_id}/approve    submitted → approved
  PUT    /api/staff/rids/{rids_id}/reject     submitted → rejected
  PUT    /api/staff/rids/{rids_id}/change-status   staff override
  GET    /api/staff/rids/{rids_id}/history    status audit trail

Every status change appends a rids_status_history row; a failed history insert
is logged and does not fail the request.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from rids_backend import cache, store
from rids_backend.auth import Identity, ensure_form_access, require_identity
from rids_backend.database import get_db
from rids_backend.errors import Forbidden, InvalidState, NotFound
from rids_backend.responses import ok
from rids_backend.rids import lifecycle
from rids_backend.rids.schemas import (
    COMPANIES,
    CORE_IDENTITY_FIELDS,
    RIDS_STATUSES,
    ChangeStatusRequest,
    RejectRequest,
    RidsFormCreate,
    RidsFormUpdate,
)

router = APIRouter(prefix="/api/staff/rids", tags=["rids"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _load_form(db: AsyncSession, rids_id: str, identity: Identity) -> dict:
    form = await store.get_form(db, rids_id)
    if form is None:
        raise NotFound("RIDS not found")
    ensure_form_access(identity, form)
    return form


def _require_staff(identity: Identity) -> None:
    if not identity.is_staff:
        raise Forbidden("Forbidden")


async def _apply(
    db: AsyncSession,
    rids_id: str,
    transition: lifecycle.Transition,
    actor_id: str,
) -> dict:
    form = await store.set_status(db, rids_id, transition.to_status, transition.changes)
    if form is None:
        raise NotFound("RIDS not found")
    await store.add_status_history(
        db,
        rids_form_id=rids_id,
        from_status=transition.from_status,
        to_status=transition.to_status,
        reason=transition.reason,
        changed_by=actor_id,
        action_type=transition.action_type,
        notes=transition.notes,
    )
    return form


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

@router.get("")
async def list_rids(
    status: str = Query("all"),
    company: Optional[str] = Query(None),
    search: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Newest first. Reservists only ever see their own form. `search` matches
    service number (afpsn) or rank, case-insensitively.
    """
    if status != "all" and status not in RIDS_STATUSES:
        raise InvalidState(f"Invalid status. Must be one of: all, {', '.join(RIDS_STATUSES)}")
    if company and company not in COMPANIES:
        raise InvalidState(f"Invalid company. Must be one of: {', '.join(COMPANIES)}")
    rows, total = await store.list_forms(
        db,
        status=None if status == "all" else status,
        company=company or None,
        search=search.strip() or None,
        page=page,
        limit=limit,
        reservist_id=None if identity.is_staff else identity.id,
    )
    return ok(
        rows,
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    )


@router.post("", status_code=201)
async def create_rids(
    body: RidsFormCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    if not identity.is_staff and body.reservist_id != identity.id:
        raise Forbidden("Forbidden")
    fields = body.model_dump(exclude_unset=True, exclude={"reservist_id"})
    form = await store.create_form(db, body.reservist_id, fields)
    logger.info("RIDS created id=%s by=%s", form["id"], identity.id)
    return ok(form, "RIDS created successfully")


# ---------------------------------------------------------------------------
# Single form
# ---------------------------------------------------------------------------

@router.get("/{rids_id}")
async def get_rids(
    rids_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _load_form(db, rids_id, identity)
    return ok(await store.get_full_form(db, rids_id))


@router.put("/{rids_id}")
async def update_rids(
    rids_id: str,
    body: RidsFormUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Only fields present in the body change."""
    form = await _load_form(db, rids_id, identity)
    fields = body.model_dump(exclude_unset=True)
    lifecycle.check_core_fields_editable(form["status"], fields, CORE_IDENTITY_FIELDS)
    updated = await store.update_form_fields(db, rids_id, fields)
    return ok(updated, "RIDS updated successfully")


@router.delete("/{rids_id}")
async def delete_rids(
    request: Request,
    rids_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    form = await _load_form(db, rids_id, identity)
    lifecycle.check_deletable(form["status"])
    await store.delete_form(db, rids_id)

    redis_client = getattr(request.app.state, "redis", None)
    if redis_client is not None:
        try:
            await cache.clear_wizard_progress(redis_client, rids_id)
        except RedisError:
            logger.warning("Redis delete failed for wizard rids_form_id=%s", rids_id)
    return ok(None, "RIDS deleted successfully")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@router.put("/{rids_id}/submit")
async def submit_rids(
    rids_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    form = await _load_form(db, rids_id, identity)
    transition = lifecycle.submit(form["status"], identity.id)
    updated = await _apply(db, rids_id, transition, identity.id)
    return ok(updated, "RIDS submitted for approval successfully")


@router.put("/{rids_id}/approve")
async def approve_rids(
    rids_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    _require_staff(identity)
    form = await _load_form(db, rids_id, identity)
    transition = lifecycle.approve(form["status"], identity.id)
    updated = await _apply(db, rids_id, transition, identity.id)
    return ok(updated, "RIDS approved successfully")


@router.put("/{rids_id}/reject")
async def reject_rids(
    rids_id: str,
    body: RejectRequest,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    _require_staff(identity)
    form = await _load_form(db, rids_id, identity)
    transition = lifecycle.reject(form["status"], body.rejection_reason)
    updated = await _apply(db, rids_id, transition, identity.id)
    return ok(updated, "RIDS rejected successfully")


@router.put("/{rids_id}/change-status")
async def change_rids_status(
    rids_id: str,
    body: ChangeStatusRequest,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    _require_staff(identity)
    form = await _load_form(db, rids_id, identity)
    transition = lifecycle.change_status(
        form["status"], body.new_status, body.reason, identity.id, body.notes
    )
    updated = await _apply(db, rids_id, transition, identity.id)
    return ok(updated, f"RIDS status changed to {transition.to_status} successfully")


@router.get("/{rids_id}/history")
async def rids_history(
    rids_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _load_form(db, rids_id, identity)
    return ok(await store.list_status_history(db, rids_id))
