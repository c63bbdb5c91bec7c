"""
lifecycle.py — RIDS form status transitions.

Pure functions: each takes the form's current status (and the actor) and returns
a Transition describing the new status, the bookkeeping columns to write and the
audit row to append. Illegal moves raise InvalidState (400). No I/O here; the
routes load the form, call one of these, then hand the Transition to store.py.

    draft ──submit──▶ submitted ──approve──▶ approved
      ▲                  │
      │               reject
      └──submit── rejected ◀┘

change_status() is the staff override: any status to any other status, with a
mandatory reason.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from rids_backend.errors import Forbidden, InvalidState
from rids_backend.rids.schemas import RIDS_STATUSES

SUBMITTABLE = ("draft", "rejected")
# Section 1 identity fields may only be edited while the form is in one of these
EDITABLE_CORE = ("draft", "rejected")
DELETABLE = ("draft",)


@dataclass(frozen=True)
class Transition:
    from_status: str
    to_status: str
    action_type: str                  # submit | approve | reject | revert | manual_change
    reason: str
    changes: dict = field(default_factory=dict)
    notes: Optional[str] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def submit(current: str, actor_id: str) -> Transition:
    if current not in SUBMITTABLE:
        raise InvalidState(f"Cannot submit RIDS with status: {current}")
    return Transition(
        from_status=current,
        to_status="submitted",
        action_type="submit",
        reason="RIDS submitted for approval",
        changes={"submitted_at": _now(), "submitted_by": actor_id},
    )


def approve(current: str, actor_id: str) -> Transition:
    if current != "submitted":
        raise InvalidState(f"Cannot approve RIDS with status: {current}")
    return Transition(
        from_status=current,
        to_status="approved",
        action_type="approve",
        reason="RIDS approved by staff",
        changes={"approved_at": _now(), "approved_by": actor_id, "rejection_reason": None},
    )


def reject(current: str, rejection_reason: str) -> Transition:
    reason = (rejection_reason or "").strip()
    if not reason:
        raise InvalidState("Rejection reason is required")
    if current != "submitted":
        raise InvalidState(f"Cannot reject RIDS with status: {current}")
    return Transition(
        from_status=current,
        to_status="rejected",
        action_type="reject",
        reason=reason,
        changes={"rejection_reason": reason},
    )


def change_status(
    current: str,
    new_status: str,
    reason: str,
    actor_id: str,
    notes: Optional[str] = None,
) -> Transition:
    """
    Staff override. Approval and rejection metadata is set or cleared to match
    the target status.
    """
    if not new_status:
        raise InvalidState("new_status is required")
    if not reason or not reason.strip():
        raise InvalidState("reason is required for status changes")
    if new_status not in RIDS_STATUSES:
        raise InvalidState(f"Invalid status. Must be one of: {', '.join(RIDS_STATUSES)}")
    if new_status == current:
        raise InvalidState(f"RIDS is already {new_status}")

    if new_status == "approved":
        changes = {"approved_by": actor_id, "approved_at": _now(), "rejection_reason": None}
    elif new_status == "rejected":
        changes = {"rejection_reason": reason.strip(), "approved_by": None, "approved_at": None}
    else:
        changes = {"approved_by": None, "approved_at": None, "rejection_reason": None}

    if new_status == "submitted":
        action_type = "submit"
    elif new_status == "approved":
        action_type = "approve"
    elif new_status == "rejected":
        action_type = "reject"
    elif new_status == "draft" and current in ("approved", "rejected"):
        action_type = "revert"
    else:
        action_type = "manual_change"

    return Transition(
        from_status=current,
        to_status=new_status,
        action_type=action_type,
        reason=reason.strip(),
        changes=changes,
        notes=notes or None,
    )


def check_core_fields_editable(current: str, fields: dict, core_fields: frozenset[str]) -> None:
    """Section 1 identity fields are frozen once the form left draft/rejected."""
    if current in EDITABLE_CORE:
        return
    frozen = sorted(core_fields.intersection(fields))
    if frozen:
        raise InvalidState(
            f"Cannot change {', '.join(frozen)} while RIDS is {current}"
        )


def check_deletable(current: str) -> None:
    if current not in DELETABLE:
        raise Forbidden("Can only delete draft RIDS")
