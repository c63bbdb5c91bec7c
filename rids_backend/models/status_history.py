"""
models/status_history.py — SQLAlchemy ORM model for RIDS status transitions.

Table: rids_status_history
Append-only audit trail: one row per submit / approve / reject / manual change.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rids_backend.database import Base, JSONType


class RidsStatusHistoryORM(Base):
    """
    action_type: 'submit', 'approve', 'reject', 'revert' or 'manual_change'.
    details:     free-form structured context, stored in the "metadata" column
                 (the attribute name is reserved by SQLAlchemy declarative).
    """
    __tablename__ = "rids_status_history"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    rids_form_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rids_forms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[str] = mapped_column(String(10), nullable=False)
    to_status: Mapped[str] = mapped_column(String(10), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    changed_by: Mapped[str] = mapped_column(
        String(36), nullable=False, comment="Identity-service account id of the actor"
    )
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)
    details: Mapped[dict] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
