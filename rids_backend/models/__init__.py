"""
models/__init__.py — imports all ORM models so Alembic's env.py
sees them via Base.metadata when generating migrations.

rids_forms first: every other table holds a foreign key to it.
"""
from rids_backend.models.rids_form import RidsFormORM
from rids_backend.models.section_entries import (
    ActiveDutyORM,
    AwardORM,
    DependentORM,
    DesignationORM,
    EducationORM,
    MilitaryTrainingORM,
    PromotionHistoryORM,
    UnitAssignmentORM,
)
from rids_backend.models.status_history import RidsStatusHistoryORM
from rids_backend.models.wizard_session import WizardSessionORM

__all__ = [
    "RidsFormORM",
    "PromotionHistoryORM",
    "MilitaryTrainingORM",
    "AwardORM",
    "DependentORM",
    "EducationORM",
    "ActiveDutyORM",
    "UnitAssignmentORM",
    "DesignationORM",
    "RidsStatusHistoryORM",
    "WizardSessionORM",
]
