"""
models/wizard_session.py — SQLAlchemy ORM model for saved wizard progress.

Table: wizard_sessions

Dual-store pattern:
  - Redis (primary):    TTL-enforced 24h progress cache, key 'wizard:{rids_form_id}'
  - PostgreSQL (here):  durable fallback, survives Redis restarts and TTL expiry

One row per RIDS form; removed together with the form.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from rids_backend.database import Base, JSONType


class WizardSessionORM(Base):
    """
    data: {"current_step": int, "submitted": bool, "drafts": {section_key: draft}}.
          Drafts hold only what the user typed and has not yet persisted.
    """
    __tablename__ = "wizard_sessions"

    rids_form_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rids_forms.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Parent RIDS form — matches the Redis key 'wizard:{id}'",
    )
    data: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Wizard progress: step pointer, submitted flag, unsaved drafts",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
