"""
store.py — Data access facade for the RIDS backend.

Every route goes through these functions — no route touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - flush(), never commit(): the get_db() dependency owns the transaction
  - Returns plain dicts (not ORM instances) so callers are persistence-agnostic
  - Logs only record ids and statuses — never names, phone numbers or addresses

Section entries are addressed by (entry_id, rids_form_id) together on every
mutation: an id that belongs to another form matches nothing and fails with
StorageError, leaving both forms untouched.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, inspect, or_, select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rids_backend.errors import Conflict, StorageError
from rids_backend.models.rids_form import RidsFormORM
from rids_backend.models.status_history import RidsStatusHistoryORM
from rids_backend.models.wizard_session import WizardSessionORM
from rids_backend.sections.registry import SECTION_SPECS, SectionSpec

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_dict(orm: Any, computed: tuple[str, ...] = ()) -> dict:
    """Column attributes of an ORM row (plus read-only properties) as a dict."""
    data = {attr.key: getattr(orm, attr.key) for attr in inspect(orm).mapper.column_attrs}
    for name in computed:
        data[name] = getattr(orm, name)
    return data


async def _flush_or_raise(db: AsyncSession, context: str) -> None:
    """
    Flush pending writes; a database rejection becomes StorageError carrying
    the driver's message. The session is rolled back first so the request's
    final commit in get_db() does not trip over a failed flush.
    """
    try:
        await db.flush()
    except (IntegrityError, DBAPIError) as exc:
        await db.rollback()
        logger.warning("Storage rejected write context=%s error=%s", context, type(exc.orig).__name__)
        raise StorageError(str(exc.orig)) from exc


# ---------------------------------------------------------------------------
# Section entry operations
# ---------------------------------------------------------------------------

async def list_entries(
    db: AsyncSession,
    spec: SectionSpec,
    rids_form_id: str,
) -> list[dict]:
    """
    All entries of one section for a RIDS form, in the section's display order.
    Returns an empty list for an unknown form.
    """
    model = spec.model
    order = [
        getattr(model, column).desc() if descending else getattr(model, column).asc()
        for column, descending in spec.order_by
    ]
    result = await db.execute(
        select(model).where(model.rids_form_id == rids_form_id).order_by(*order)
    )
    return [_row_to_dict(row, spec.computed) for row in result.scalars().all()]


async def create_entry(
    db: AsyncSession,
    spec: SectionSpec,
    rids_form_id: str,
    values: dict,
) -> dict:
    """
    Insert one section entry under rids_form_id.

    values must already be validated against spec.create_schema. The parent's
    existence and NOT NULL columns are checked by the database; a violation
    raises StorageError with the database's message.
    """
    orm = spec.model(rids_form_id=rids_form_id, **values)
    db.add(orm)
    await _flush_or_raise(db, f"create {spec.key}")
    logger.info("Created %s entry id=%s rids_form_id=%s", spec.key, orm.id, rids_form_id)
    return _row_to_dict(orm, spec.computed)


async def update_entry(
    db: AsyncSession,
    spec: SectionSpec,
    rids_form_id: str,
    entry_id: str,
    changes: dict,
) -> dict:
    """
    Apply changes to one entry and refresh updated_at.
    Only the keys present in changes are written.
    """
    model = spec.model
    result = await db.execute(
        select(model).where(model.id == entry_id, model.rids_form_id == rids_form_id)
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        logger.info("No %s entry id=%s under rids_form_id=%s", spec.key, entry_id, rids_form_id)
        raise StorageError(f"{spec.label} entry not found for this RIDS form")

    for key, value in changes.items():
        setattr(orm, key, value)
    orm.updated_at = _utcnow()
    await _flush_or_raise(db, f"update {spec.key}")
    logger.info("Updated %s entry id=%s rids_form_id=%s", spec.key, entry_id, rids_form_id)
    return _row_to_dict(orm, spec.computed)


async def delete_entry(
    db: AsyncSession,
    spec: SectionSpec,
    rids_form_id: str,
    entry_id: str,
) -> None:
    model = spec.model
    try:
        result = await db.execute(
            delete(model).where(model.id == entry_id, model.rids_form_id == rids_form_id)
        )
    except DBAPIError as exc:
        await db.rollback()
        raise StorageError(str(exc.orig)) from exc
    if result.rowcount == 0:
        logger.info("No %s entry id=%s under rids_form_id=%s", spec.key, entry_id, rids_form_id)
        raise StorageError(f"{spec.label} entry not found for this RIDS form")
    logger.info("Deleted %s entry id=%s rids_form_id=%s", spec.key, entry_id, rids_form_id)


# ---------------------------------------------------------------------------
# RIDS form operations
# ---------------------------------------------------------------------------

async def _load_form(db: AsyncSession, rids_form_id: str) -> Optional[RidsFormORM]:
    result = await db.execute(select(RidsFormORM).where(RidsFormORM.id == rids_form_id))
    return result.scalar_one_or_none()


async def get_form(db: AsyncSession, rids_form_id: str) -> Optional[dict]:
    """Form-level row only. Returns None if the form does not exist (caller raises 404)."""
    orm = await _load_form(db, rids_form_id)
    return None if orm is None else _row_to_dict(orm)


async def get_full_form(db: AsyncSession, rids_form_id: str) -> Optional[dict]:
    """
    The form row with every multi-valued section embedded under "sections",
    keyed by section key, each list in the section's display order.
    """
    form = await get_form(db, rids_form_id)
    if form is None:
        return None
    form["sections"] = {
        spec.key: await list_entries(db, spec, rids_form_id) for spec in SECTION_SPECS
    }
    return form


async def get_form_by_reservist(db: AsyncSession, reservist_id: str) -> Optional[dict]:
    result = await db.execute(
        select(RidsFormORM).where(RidsFormORM.reservist_id == reservist_id)
    )
    orm = result.scalar_one_or_none()
    return None if orm is None else _row_to_dict(orm)


async def list_forms(
    db: AsyncSession,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    reservist_id: Optional[str] = None,
    company: Optional[str] = None,
    search: Optional[str] = None,
) -> tuple[list[dict], int]:
    """
    One page of forms, newest first, plus the total matching count.
    status=None lists every status; reservist_id narrows to one owner;
    search is a case-insensitive substring of afpsn or rank.
    """
    filters = []
    if status is not None:
        filters.append(RidsFormORM.status == status)
    if company is not None:
        filters.append(RidsFormORM.company == company)
    if search:
        filters.append(
            or_(
                RidsFormORM.afpsn.icontains(search, autoescape=True),
                RidsFormORM.rank.icontains(search, autoescape=True),
            )
        )
    if reservist_id is not None:
        filters.append(RidsFormORM.reservist_id == reservist_id)

    total = (
        await db.execute(select(func.count()).select_from(RidsFormORM).where(*filters))
    ).scalar_one()
    result = await db.execute(
        select(RidsFormORM)
        .where(*filters)
        .order_by(RidsFormORM.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return [_row_to_dict(row) for row in result.scalars().all()], total


async def create_form(db: AsyncSession, reservist_id: str, fields: dict) -> dict:
    """
    Create a draft form (version 1) for a reservist.
    One form per reservist: a second create raises Conflict.
    """
    if await get_form_by_reservist(db, reservist_id) is not None:
        raise Conflict("RIDS already exists for this reservist")

    orm = RidsFormORM(reservist_id=reservist_id, status="draft", version=1, **fields)
    db.add(orm)
    try:
        await db.flush()
    except IntegrityError as exc:
        # lost a race against a concurrent create for the same reservist
        await db.rollback()
        raise Conflict("RIDS already exists for this reservist") from exc
    logger.info("Created RIDS form id=%s", orm.id)
    return _row_to_dict(orm)


async def update_form_fields(
    db: AsyncSession,
    rids_form_id: str,
    fields: dict,
) -> Optional[dict]:
    """Write form-level section fields; refreshes updated_at. None if the form is missing."""
    orm = await _load_form(db, rids_form_id)
    if orm is None:
        return None
    for key, value in fields.items():
        setattr(orm, key, value)
    orm.updated_at = _utcnow()
    await _flush_or_raise(db, "update rids_form")
    logger.info("Updated RIDS form id=%s fields=%d", rids_form_id, len(fields))
    return _row_to_dict(orm)


async def delete_form(db: AsyncSession, rids_form_id: str) -> bool:
    """Delete a form; its entries, history and wizard session go with it (FK cascade)."""
    result = await db.execute(delete(RidsFormORM).where(RidsFormORM.id == rids_form_id))
    deleted = result.rowcount > 0
    if deleted:
        logger.info("Deleted RIDS form id=%s", rids_form_id)
    return deleted


async def set_status(
    db: AsyncSession,
    rids_form_id: str,
    to_status: str,
    changes: dict,
) -> Optional[dict]:
    """
    Move a form to to_status and apply the lifecycle bookkeeping columns in
    changes (submitted_at, approved_by, rejection_reason, ...).
    Transition rules live in rids/lifecycle.py; this function does not check them.
    """
    orm = await _load_form(db, rids_form_id)
    if orm is None:
        return None
    from_status = orm.status
    orm.status = to_status
    for key, value in changes.items():
        setattr(orm, key, value)
    orm.updated_at = _utcnow()
    await _flush_or_raise(db, "set status")
    logger.info("RIDS form id=%s status %s -> %s", rids_form_id, from_status, to_status)
    return _row_to_dict(orm)


# ---------------------------------------------------------------------------
# Status history operations
# ---------------------------------------------------------------------------

async def add_status_history(
    db: AsyncSession,
    rids_form_id: str,
    from_status: str,
    to_status: str,
    reason: str,
    changed_by: str,
    action_type: str,
    notes: Optional[str] = None,
    details: Optional[dict] = None,
) -> bool:
    """
    Append one audit row. Runs in a SAVEPOINT: if the insert fails the error
    is logged and the surrounding status change still commits.
    Returns True when the row was written.
    """
    try:
        async with db.begin_nested():
            db.add(
                RidsStatusHistoryORM(
                    rids_form_id=rids_form_id,
                    from_status=from_status,
                    to_status=to_status,
                    reason=reason,
                    notes=notes,
                    changed_by=changed_by,
                    action_type=action_type,
                    details=details or {},
                )
            )
    except SQLAlchemyError:
        logger.error(
            "Failed to record status history rids_form_id=%s action=%s",
            rids_form_id,
            action_type,
            exc_info=True,
        )
        return False
    return True


async def list_status_history(db: AsyncSession, rids_form_id: str) -> list[dict]:
    """Status history for a form, oldest first."""
    result = await db.execute(
        select(RidsStatusHistoryORM)
        .where(RidsStatusHistoryORM.rids_form_id == rids_form_id)
        .order_by(RidsStatusHistoryORM.created_at.asc())
    )
    return [
        {
            "id": row.id,
            "from_status": row.from_status,
            "to_status": row.to_status,
            "reason": row.reason,
            "notes": row.notes,
            "changed_by": row.changed_by,
            "action_type": row.action_type,
            "metadata": row.details,
            "created_at": row.created_at.isoformat(),
        }
        for row in result.scalars().all()
    ]


# ---------------------------------------------------------------------------
# Wizard progress operations
# ---------------------------------------------------------------------------

async def get_wizard_progress(db: AsyncSession, rids_form_id: str) -> Optional[dict]:
    """
    Saved wizard progress from PostgreSQL. Returns None if never saved.
    Note: Redis (cache.py) is read first by the route; this is the durable fallback.
    """
    result = await db.execute(
        select(WizardSessionORM).where(WizardSessionORM.rids_form_id == rids_form_id)
    )
    orm = result.scalar_one_or_none()
    return None if orm is None else orm.data


async def set_wizard_progress(db: AsyncSession, rids_form_id: str, data: dict) -> None:
    """
    Upsert wizard progress in PostgreSQL.
    Note: caller is also responsible for writing to Redis (cache.py) for TTL management.
    """
    result = await db.execute(
        select(WizardSessionORM).where(WizardSessionORM.rids_form_id == rids_form_id)
    )
    orm = result.scalar_one_or_none()

    if orm is None:
        orm = WizardSessionORM(rids_form_id=rids_form_id, data=data)
        db.add(orm)
    else:
        orm.data = data  # reassigned, so SQLAlchemy marks the JSON column dirty

    await _flush_or_raise(db, "set wizard progress")
    logger.info("Saved wizard progress rids_form_id=%s step=%s", rids_form_id, data.get("current_step"))
