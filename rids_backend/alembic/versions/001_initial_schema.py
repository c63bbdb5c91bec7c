"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000 UTC

Creates the RIDS tables:
  - rids_forms            (parent aggregate: lifecycle + Sections 1, 2 and 11)
  - rids_promotion_history, rids_military_training, rids_awards, rids_dependents,
    rids_education, rids_active_duty, rids_unit_assignments, rids_designations
                          (multi-valued sections, FK → rids_forms ON DELETE CASCADE)
  - rids_status_history   (append-only audit trail)
  - wizard_sessions       (durable wizard progress, JSONB blob)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _entry_columns() -> list[sa.Column]:
    """Columns every section entry table shares."""
    return [
        sa.Column("id", sa.String(length=36), nullable=False, comment="UUID row identifier"),
        sa.Column(
            "rids_form_id",
            sa.String(length=36),
            sa.ForeignKey("rids_forms.id", ondelete="CASCADE"),
            nullable=False,
            comment="Parent RIDS form — rows are removed with the form",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _create_entry_table(name: str, *columns: sa.Column) -> None:
    op.create_table(name, *_entry_columns(), *columns, sa.PrimaryKeyConstraint("id"))
    op.create_index(op.f(f"ix_{name}_rids_form_id"), name, ["rids_form_id"], unique=False)


def upgrade() -> None:
    # --- rids_forms table ---
    op.create_table(
        "rids_forms",
        sa.Column("id", sa.String(length=36), nullable=False, comment="UUID primary key"),
        sa.Column("reservist_id", sa.String(length=36), nullable=False, comment="Identity-service account id of the owning reservist — one form per reservist"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False, comment="'draft', 'submitted', 'approved' or 'rejected'"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_by", sa.String(length=36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(length=36), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        # Section 1: personnel information
        sa.Column("rank", sa.String(length=50), nullable=True),
        sa.Column("afpsn", sa.String(length=30), nullable=True, comment="Armed Forces service number"),
        sa.Column("br_svc", sa.String(length=50), nullable=True, comment="Branch of service"),
        sa.Column("afpos_mos", sa.String(length=10), nullable=True, comment="Position / military occupational specialty code"),
        sa.Column("source_of_commission", sa.String(length=20), nullable=True),
        sa.Column("initial_rank", sa.String(length=50), nullable=True),
        sa.Column("date_of_commission", sa.Date(), nullable=True),
        sa.Column("commission_authority", sa.String(length=255), nullable=True),
        sa.Column("reservist_classification", sa.String(length=10), nullable=True, comment="'READY', 'STANDBY' or 'RETIRED'"),
        sa.Column("mobilization_center", sa.String(length=255), nullable=True),
        sa.Column("designation", sa.String(length=255), nullable=True),
        sa.Column("squad_team_section", sa.String(length=100), nullable=True),
        sa.Column("platoon", sa.String(length=100), nullable=True),
        sa.Column("company", sa.String(length=20), nullable=True),
        sa.Column("battalion_brigade_division", sa.String(length=255), nullable=True),
        sa.Column("combat_shoes_size", sa.String(length=10), nullable=True),
        sa.Column("cap_size_cm", sa.Float(), nullable=True),
        sa.Column("bda_size", sa.String(length=10), nullable=True, comment="Battle dress attire size"),
        # Section 2: personal information
        sa.Column("present_occupation", sa.String(length=255), nullable=True),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("company_address", sa.Text(), nullable=True),
        sa.Column("office_tel_nr", sa.String(length=30), nullable=True),
        sa.Column("home_address_street", sa.String(length=255), nullable=True),
        sa.Column("home_address_city", sa.String(length=100), nullable=True),
        sa.Column("home_address_province", sa.String(length=100), nullable=True),
        sa.Column("home_address_zip", sa.String(length=10), nullable=True),
        sa.Column("res_tel_nr", sa.String(length=30), nullable=True),
        sa.Column("mobile_tel_nr", sa.String(length=30), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("birth_place", sa.String(length=255), nullable=True),
        sa.Column("religion", sa.String(length=100), nullable=True),
        sa.Column("blood_type", sa.String(length=3), nullable=True),
        sa.Column("tin", sa.String(length=20), nullable=True),
        sa.Column("sss_number", sa.String(length=20), nullable=True),
        sa.Column("philhealth_number", sa.String(length=20), nullable=True),
        sa.Column("height_cm", sa.Float(), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("marital_status", sa.String(length=10), nullable=True),
        sa.Column("sex", sa.String(length=6), nullable=True),
        sa.Column("fb_account", sa.String(length=255), nullable=True),
        sa.Column("email_address", sa.String(length=255), nullable=True),
        sa.Column("special_skills", sa.Text(), nullable=True),
        sa.Column("languages_spoken", sa.Text(), nullable=True),
        # Section 11: biometrics
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("thumbmark_url", sa.Text(), nullable=True),
        sa.Column("signature_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_rids_forms_reservist_id"), "rids_forms", ["reservist_id"], unique=True)
    op.create_index(op.f("ix_rids_forms_status"), "rids_forms", ["status"], unique=False)

    # --- section entry tables ---
    _create_entry_table(
        "rids_promotion_history",
        sa.Column("entry_number", sa.Integer(), nullable=False, comment="Display order within the form"),
        sa.Column("rank", sa.String(length=50), nullable=False),
        sa.Column("date_of_rank", sa.Date(), nullable=False),
        sa.Column("authority", sa.String(length=255), nullable=False),
        sa.Column("action_type", sa.String(length=30), nullable=False, comment="'Promotion', 'Demotion' or 'Initial Commission'"),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    _create_entry_table(
        "rids_military_training",
        sa.Column("training_name", sa.String(length=255), nullable=False),
        sa.Column("school", sa.String(length=255), nullable=False),
        sa.Column("date_graduated", sa.Date(), nullable=False),
        sa.Column("certificate_number", sa.String(length=100), nullable=True),
        sa.Column("training_category", sa.String(length=50), nullable=True),
        sa.Column("duration_days", sa.Integer(), nullable=True),
        sa.Column("verification_status", sa.String(length=10), nullable=False),
    )
    _create_entry_table(
        "rids_awards",
        sa.Column("award_name", sa.String(length=255), nullable=False),
        sa.Column("authority", sa.String(length=255), nullable=False),
        sa.Column("date_awarded", sa.Date(), nullable=False),
        sa.Column("citation", sa.Text(), nullable=True),
        sa.Column("award_category", sa.String(length=50), nullable=True),
    )
    _create_entry_table(
        "rids_dependents",
        sa.Column("relation", sa.String(length=20), nullable=False, comment="Spouse, Son, Daughter, Father, Mother, Sibling"),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("contact_info", sa.String(length=255), nullable=True),
    )
    _create_entry_table(
        "rids_education",
        sa.Column("course", sa.String(length=255), nullable=False),
        sa.Column("school", sa.String(length=255), nullable=False),
        sa.Column("date_graduated", sa.Date(), nullable=False),
        sa.Column("level", sa.String(length=30), nullable=False),
        sa.Column("honors", sa.String(length=255), nullable=True),
    )
    _create_entry_table(
        "rids_active_duty",
        sa.Column("unit", sa.String(length=255), nullable=False),
        sa.Column("purpose", sa.String(length=255), nullable=False),
        sa.Column("authority", sa.String(length=255), nullable=False),
        sa.Column("date_start", sa.Date(), nullable=False),
        sa.Column("date_end", sa.Date(), nullable=False),
        sa.Column("efficiency_rating", sa.String(length=30), nullable=True),
        sa.Column("evaluator", sa.String(length=255), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("verification_status", sa.String(length=10), nullable=False),
    )
    _create_entry_table(
        "rids_unit_assignments",
        sa.Column("unit", sa.String(length=255), nullable=False),
        sa.Column("authority", sa.String(length=255), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=True, comment="NULL while current"),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("assignment_reason", sa.Text(), nullable=True),
    )
    _create_entry_table(
        "rids_designations",
        sa.Column("position", sa.String(length=255), nullable=False),
        sa.Column("authority", sa.String(length=255), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=True, comment="NULL while current"),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("responsibilities", postgresql.JSONB(astext_type=sa.Text()), nullable=True, comment="List of responsibility strings"),
    )

    # --- rids_status_history table ---
    op.create_table(
        "rids_status_history",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("rids_form_id", sa.String(length=36), sa.ForeignKey("rids_forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_status", sa.String(length=10), nullable=False),
        sa.Column("to_status", sa.String(length=10), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(length=36), nullable=False, comment="Identity-service account id of the actor"),
        sa.Column("action_type", sa.String(length=20), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_rids_status_history_rids_form_id"), "rids_status_history", ["rids_form_id"], unique=False)

    # --- wizard_sessions table ---
    op.create_table(
        "wizard_sessions",
        sa.Column("rids_form_id", sa.String(length=36), sa.ForeignKey("rids_forms.id", ondelete="CASCADE"), nullable=False, comment="Parent RIDS form — matches the Redis key 'wizard:{id}'"),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment="Wizard progress: step pointer, submitted flag, unsaved drafts"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("rids_form_id"),
    )


def downgrade() -> None:
    op.drop_table("wizard_sessions")
    op.drop_index(op.f("ix_rids_status_history_rids_form_id"), table_name="rids_status_history")
    op.drop_table("rids_status_history")
    for name in (
        "rids_designations",
        "rids_unit_assignments",
        "rids_active_duty",
        "rids_education",
        "rids_dependents",
        "rids_awards",
        "rids_military_training",
        "rids_promotion_history",
    ):
        op.drop_index(op.f(f"ix_{name}_rids_form_id"), table_name=name)
        op.drop_table(name)
    op.drop_index(op.f("ix_rids_forms_status"), table_name="rids_forms")
    op.drop_index(op.f("ix_rids_forms_reservist_id"), table_name="rids_forms")
    op.drop_table("rids_forms")
