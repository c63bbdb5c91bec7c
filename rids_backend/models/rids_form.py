"""
models/rids_form.py — SQLAlchemy ORM model for the parent RIDS form.

Table: rids_forms
One row per reservist (reservist_id unique). Holds the lifecycle status plus the
form-level sections that are single-valued:
  - Section 1  personnel information
  - Section 2  personal information
  - Section 11 biometrics (storage paths only, files live in object storage)

Multi-valued sections live in their own tables (models/section_entries.py) and
reference rids_forms.id with ON DELETE CASCADE.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rids_backend.database import Base


class RidsFormORM(Base):
    """
    ORM model for a Reservist Information Data Sheet.

    status: 'draft' | 'submitted' | 'approved' | 'rejected'. Only draft and
            rejected forms may have their Section 1 identity fields changed.
    version: starts at 1; reserved for re-issued forms.
    """
    __tablename__ = "rids_forms"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="UUID primary key",
    )
    reservist_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        index=True,
        comment="Identity-service account id of the owning reservist — one form per reservist",
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="draft",
        index=True,
        comment="'draft', 'submitted', 'approved' or 'rejected'",
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    submitted_by: Mapped[Optional[str]] = mapped_column(String(36))
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    approved_by: Mapped[Optional[str]] = mapped_column(String(36))
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)

    # --- Section 1: personnel information ---
    rank: Mapped[Optional[str]] = mapped_column(String(50))
    afpsn: Mapped[Optional[str]] = mapped_column(
        String(30), comment="Armed Forces service number"
    )
    br_svc: Mapped[Optional[str]] = mapped_column(String(50), comment="Branch of service")
    afpos_mos: Mapped[Optional[str]] = mapped_column(
        String(10), comment="Position / military occupational specialty code"
    )
    source_of_commission: Mapped[Optional[str]] = mapped_column(String(20))
    initial_rank: Mapped[Optional[str]] = mapped_column(String(50))
    date_of_commission: Mapped[Optional[date]] = mapped_column(Date)
    commission_authority: Mapped[Optional[str]] = mapped_column(String(255))
    reservist_classification: Mapped[Optional[str]] = mapped_column(
        String(10), comment="'READY', 'STANDBY' or 'RETIRED'"
    )
    mobilization_center: Mapped[Optional[str]] = mapped_column(String(255))
    designation: Mapped[Optional[str]] = mapped_column(String(255))
    squad_team_section: Mapped[Optional[str]] = mapped_column(String(100))
    platoon: Mapped[Optional[str]] = mapped_column(String(100))
    company: Mapped[Optional[str]] = mapped_column(String(20))
    battalion_brigade_division: Mapped[Optional[str]] = mapped_column(String(255))
    combat_shoes_size: Mapped[Optional[str]] = mapped_column(String(10))
    cap_size_cm: Mapped[Optional[float]] = mapped_column(Float)
    bda_size: Mapped[Optional[str]] = mapped_column(String(10), comment="Battle dress attire size")

    # --- Section 2: personal information ---
    present_occupation: Mapped[Optional[str]] = mapped_column(String(255))
    company_name: Mapped[Optional[str]] = mapped_column(String(255))
    company_address: Mapped[Optional[str]] = mapped_column(Text)
    office_tel_nr: Mapped[Optional[str]] = mapped_column(String(30))
    home_address_street: Mapped[Optional[str]] = mapped_column(String(255))
    home_address_city: Mapped[Optional[str]] = mapped_column(String(100))
    home_address_province: Mapped[Optional[str]] = mapped_column(String(100))
    home_address_zip: Mapped[Optional[str]] = mapped_column(String(10))
    res_tel_nr: Mapped[Optional[str]] = mapped_column(String(30))
    mobile_tel_nr: Mapped[Optional[str]] = mapped_column(String(30))
    birthdate: Mapped[Optional[date]] = mapped_column(Date)
    birth_place: Mapped[Optional[str]] = mapped_column(String(255))
    religion: Mapped[Optional[str]] = mapped_column(String(100))
    blood_type: Mapped[Optional[str]] = mapped_column(String(3))
    tin: Mapped[Optional[str]] = mapped_column(String(20))
    sss_number: Mapped[Optional[str]] = mapped_column(String(20))
    philhealth_number: Mapped[Optional[str]] = mapped_column(String(20))
    height_cm: Mapped[Optional[float]] = mapped_column(Float)
    weight_kg: Mapped[Optional[float]] = mapped_column(Float)
    marital_status: Mapped[Optional[str]] = mapped_column(String(10))
    sex: Mapped[Optional[str]] = mapped_column(String(6))
    fb_account: Mapped[Optional[str]] = mapped_column(String(255))
    email_address: Mapped[Optional[str]] = mapped_column(String(255))
    special_skills: Mapped[Optional[str]] = mapped_column(Text)
    languages_spoken: Mapped[Optional[str]] = mapped_column(Text)

    # --- Section 11: biometrics (object-storage paths) ---
    photo_url: Mapped[Optional[str]] = mapped_column(Text)
    thumbmark_url: Mapped[Optional[str]] = mapped_column(Text)
    signature_url: Mapped[Optional[str]] = mapped_column(Text)

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
