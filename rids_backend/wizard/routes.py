"""
Wizard progress HTTP routes — save and resume an in-flight RIDS wizard.

  GET /api/staff/rids/{rids_id}/wizard   saved progress, or a fresh state at step 0
  PUT /api/staff/rids/{rids_id}/wizard   save progress

Dual-store pattern (same as every other cached record here):
  - Redis 'wizard:{rids_id}' (TTL 24h) is read first when a client is configured
  - wizard_sessions (PostgreSQL) is always written and is the durable fallback

A Redis outage degrades to PostgreSQL only; it never fails the request.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, model_validator
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from rids_backend import cache, store
from rids_backend.auth import Identity, ensure_form_access, require_identity
from rids_backend.database import get_db
from rids_backend.errors import NotFound
from rids_backend.responses import ok
from rids_backend.wizard.drafts import SectionDraft
from rids_backend.wizard.steps import TOTAL_STEPS

router = APIRouter(prefix="/api/staff/rids", tags=["wizard"])
logger = logging.getLogger(__name__)


class WizardProgress(BaseModel):
    current_step: int = Field(0, ge=0, le=TOTAL_STEPS - 1)
    submitted: bool = False
    drafts: dict[str, SectionDraft] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_match_tags(self) -> "WizardProgress":
        for key, draft in self.drafts.items():
            if key != draft.section:
                raise ValueError(f"draft under '{key}' is tagged '{draft.section}'")
        return self


async def _load_form(db: AsyncSession, rids_id: str, identity: Identity) -> None:
    form = await store.get_form(db, rids_id)
    if form is None:
        raise NotFound("RIDS not found")
    ensure_form_access(identity, form)


async def _read_cached(request: Request, rids_id: str) -> Optional[dict]:
    redis_client = getattr(request.app.state, "redis", None)
    if redis_client is None:
        return None
    try:
        return await cache.get_wizard_progress(redis_client, rids_id)
    except RedisError:
        logger.warning("Redis read failed for wizard rids_form_id=%s, using PostgreSQL", rids_id)
        return None


async def _write_cached(request: Request, rids_id: str, data: dict) -> None:
    redis_client = getattr(request.app.state, "redis", None)
    if redis_client is None:
        return
    try:
        await cache.set_wizard_progress(redis_client, rids_id, data)
    except RedisError:
        logger.warning("Redis write failed for wizard rids_form_id=%s", rids_id)


@router.get("/{rids_id}/wizard")
async def get_wizard_progress(
    request: Request,
    rids_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _load_form(db, rids_id, identity)
    data = await _read_cached(request, rids_id)
    if data is None:
        data = await store.get_wizard_progress(db, rids_id)
        if data is not None:
            # re-warm the cache after a TTL expiry
            await _write_cached(request, rids_id, data)
    if data is None:
        data = WizardProgress().model_dump(mode="json")
    return ok(data)


@router.put("/{rids_id}/wizard")
async def save_wizard_progress(
    request: Request,
    rids_id: str,
    body: WizardProgress,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _load_form(db, rids_id, identity)
    data = body.model_dump(mode="json", exclude_unset=True)
    data.setdefault("current_step", body.current_step)
    data.setdefault("submitted", body.submitted)
    data.setdefault("drafts", {})
    await store.set_wizard_progress(db, rids_id, data)
    await _write_cached(request, rids_id, data)
    return ok(data, "Wizard progress saved")
