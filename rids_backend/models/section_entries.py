"""
models/section_entries.py — SQLAlchemy ORM models for multi-valued RIDS sections.

One table per section, all sharing the same skeleton (SectionEntryMixin):
  id            UUID row identifier
  rids_form_id  parent form — FK with ON DELETE CASCADE, indexed
  created_at / updated_at

Required business fields are NOT NULL so the database, not the route, rejects
incomplete entries.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rids_backend.database import Base, JSONType


class SectionEntryMixin:
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="UUID row identifier",
    )
    rids_form_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rids_forms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Parent RIDS form — rows are removed with the form",
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


# ---------------------------------------------------------------------------
# Section 3: promotion / demotion history
# ---------------------------------------------------------------------------

class PromotionHistoryORM(SectionEntryMixin, Base):
    __tablename__ = "rids_promotion_history"

    entry_number: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Display order within the form"
    )
    rank: Mapped[str] = mapped_column(String(50), nullable=False)
    date_of_rank: Mapped[date] = mapped_column(Date, nullable=False)
    authority: Mapped[str] = mapped_column(String(255), nullable=False)
    action_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default="Promotion",
        comment="'Promotion', 'Demotion' or 'Initial Commission'",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)


# ---------------------------------------------------------------------------
# Section 4: military training / seminar / schooling
# ---------------------------------------------------------------------------

class MilitaryTrainingORM(SectionEntryMixin, Base):
    __tablename__ = "rids_military_training"

    training_name: Mapped[str] = mapped_column(String(255), nullable=False)
    school: Mapped[str] = mapped_column(String(255), nullable=False)
    date_graduated: Mapped[date] = mapped_column(Date, nullable=False)
    certificate_number: Mapped[Optional[str]] = mapped_column(String(100))
    training_category: Mapped[Optional[str]] = mapped_column(String(50))
    duration_days: Mapped[Optional[int]] = mapped_column(Integer)
    verification_status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="pending"
    )


# ---------------------------------------------------------------------------
# Section 5: awards and decorations
# ---------------------------------------------------------------------------

class AwardORM(SectionEntryMixin, Base):
    __tablename__ = "rids_awards"

    award_name: Mapped[str] = mapped_column(String(255), nullable=False)
    authority: Mapped[str] = mapped_column(String(255), nullable=False)
    date_awarded: Mapped[date] = mapped_column(Date, nullable=False)
    citation: Mapped[Optional[str]] = mapped_column(Text)
    award_category: Mapped[Optional[str]] = mapped_column(String(50))


# ---------------------------------------------------------------------------
# Section 6: dependents
# ---------------------------------------------------------------------------

class DependentORM(SectionEntryMixin, Base):
    __tablename__ = "rids_dependents"

    relation: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Spouse, Son, Daughter, Father, Mother, Sibling"
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    birthdate: Mapped[Optional[date]] = mapped_column(Date)
    contact_info: Mapped[Optional[str]] = mapped_column(String(255))


# ---------------------------------------------------------------------------
# Section 7: educational attainment
# ---------------------------------------------------------------------------

class EducationORM(SectionEntryMixin, Base):
    __tablename__ = "rids_education"

    course: Mapped[str] = mapped_column(String(255), nullable=False)
    school: Mapped[str] = mapped_column(String(255), nullable=False)
    date_graduated: Mapped[date] = mapped_column(Date, nullable=False)
    level: Mapped[str] = mapped_column(String(30), nullable=False)
    honors: Mapped[Optional[str]] = mapped_column(String(255))


# ---------------------------------------------------------------------------
# Section 8: CAD / OJT / ADT (active duty)
# ---------------------------------------------------------------------------

class ActiveDutyORM(SectionEntryMixin, Base):
    __tablename__ = "rids_active_duty"

    unit: Mapped[str] = mapped_column(String(255), nullable=False)
    purpose: Mapped[str] = mapped_column(String(255), nullable=False)
    authority: Mapped[str] = mapped_column(String(255), nullable=False)
    date_start: Mapped[date] = mapped_column(Date, nullable=False)
    date_end: Mapped[date] = mapped_column(Date, nullable=False)
    efficiency_rating: Mapped[Optional[str]] = mapped_column(String(30))
    evaluator: Mapped[Optional[str]] = mapped_column(String(255))
    remarks: Mapped[Optional[str]] = mapped_column(Text)
    verification_status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="pending"
    )

    @property
    def days_served(self) -> Optional[int]:
        """Inclusive day count — a one-day duty has date_start == date_end."""
        if self.date_start is None or self.date_end is None:
            return None
        return (self.date_end - self.date_start).days + 1


# ---------------------------------------------------------------------------
# Section 9: unit assignment history
# ---------------------------------------------------------------------------

class UnitAssignmentORM(SectionEntryMixin, Base):
    __tablename__ = "rids_unit_assignments"

    unit: Mapped[str] = mapped_column(String(255), nullable=False)
    authority: Mapped[str] = mapped_column(String(255), nullable=False)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[Optional[date]] = mapped_column(Date, comment="NULL while current")
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assignment_reason: Mapped[Optional[str]] = mapped_column(Text)


# ---------------------------------------------------------------------------
# Section 10: designation history
# ---------------------------------------------------------------------------

class DesignationORM(SectionEntryMixin, Base):
    __tablename__ = "rids_designations"

    position: Mapped[str] = mapped_column(String(255), nullable=False)
    authority: Mapped[str] = mapped_column(String(255), nullable=False)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[Optional[date]] = mapped_column(Date, comment="NULL while current")
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    responsibilities: Mapped[Optional[list]] = mapped_column(
        JSONType, comment="List of responsibility strings"
    )
