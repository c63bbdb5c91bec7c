"""
schemas.py — Section entry Pydantic v2 payload contracts.

Defines, per multi-valued RIDS section:
  - <Section>Create  (POST body — required fields enforced, defaults applied)
  - <Section>Update  (PUT body — every field optional, only supplied fields change)

Payloads ignore unknown keys (extra="ignore"): clients post whole form drafts
and only the section's own columns are forwarded to storage. Identity columns
(id, rids_form_id, created_at, updated_at) are never accepted from the body.

Blank strings are normalised to None so an emptied optional input stores NULL.
"""
from __future__ import annotations

from datetime import date
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model, model_validator


# ---------------------------------------------------------------------------
# Shared value sets
# ---------------------------------------------------------------------------

DependentRelation = Literal["Spouse", "Son", "Daughter", "Father", "Mother", "Sibling"]
EducationLevel = Literal[
    "High School",
    "Vocational",
    "College",
    "Graduate - Masters",
    "Graduate - Doctorate",
]
PromotionActionType = Literal["Promotion", "Demotion", "Initial Commission"]
VerificationStatus = Literal["verified", "pending", "rejected"]


class EntryPayload(BaseModel):
    """Base for every section payload."""
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: None if isinstance(value, str) and not value.strip() else value
            for key, value in data.items()
        }


# ---------------------------------------------------------------------------
# Section 3: promotion history
# ---------------------------------------------------------------------------

class PromotionHistoryCreate(EntryPayload):
    entry_number: int = Field(..., ge=1)
    rank: str
    date_of_rank: date
    authority: str
    action_type: PromotionActionType = "Promotion"
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 4: military training
# ---------------------------------------------------------------------------

class MilitaryTrainingCreate(EntryPayload):
    training_name: str
    school: str
    date_graduated: date
    certificate_number: Optional[str] = None
    training_category: Optional[str] = None
    duration_days: Optional[int] = Field(default=None, ge=0)
    verification_status: VerificationStatus = "pending"


# ---------------------------------------------------------------------------
# Section 5: awards
# ---------------------------------------------------------------------------

class AwardCreate(EntryPayload):
    award_name: str
    authority: str
    date_awarded: date
    citation: Optional[str] = None
    award_category: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 6: dependents
# ---------------------------------------------------------------------------

class DependentCreate(EntryPayload):
    relation: DependentRelation
    full_name: str
    birthdate: Optional[date] = None
    contact_info: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 7: education
# ---------------------------------------------------------------------------

class EducationCreate(EntryPayload):
    course: str
    school: str
    date_graduated: date
    level: EducationLevel
    honors: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 8: active duty
# ---------------------------------------------------------------------------

class ActiveDutyCreate(EntryPayload):
    unit: str
    purpose: str
    authority: str
    date_start: date
    date_end: date
    efficiency_rating: Optional[str] = None
    evaluator: Optional[str] = None
    remarks: Optional[str] = None
    verification_status: VerificationStatus = "pending"


# ---------------------------------------------------------------------------
# Section 9: unit assignments
# ---------------------------------------------------------------------------

class UnitAssignmentCreate(EntryPayload):
    unit: str
    authority: str
    date_from: date
    date_to: Optional[date] = None
    is_current: bool = False
    assignment_reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 10: designations
# ---------------------------------------------------------------------------

class DesignationCreate(EntryPayload):
    position: str
    authority: str
    date_from: date
    date_to: Optional[date] = None
    is_current: bool = False
    responsibilities: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Update payloads — same fields, all optional, no defaults applied
# ---------------------------------------------------------------------------

def partial_model(model: type[EntryPayload]) -> type[EntryPayload]:
    """
    Build the PUT payload for a section from its create payload.

    Every field becomes Optional with default None; routes dump with
    exclude_unset=True so fields the caller did not send stay untouched.
    Field constraints (ge=..., Literal sets) are kept.
    """
    fields: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        inner = info.annotation
        if info.metadata:
            inner = Annotated[(inner, *info.metadata)]
        fields[name] = (Optional[inner], None)
    return create_model(
        model.__name__.replace("Create", "Update"),
        __base__=EntryPayload,
        **fields,
    )


PromotionHistoryUpdate = partial_model(PromotionHistoryCreate)
MilitaryTrainingUpdate = partial_model(MilitaryTrainingCreate)
AwardUpdate = partial_model(AwardCreate)
DependentUpdate = partial_model(DependentCreate)
EducationUpdate = partial_model(EducationCreate)
ActiveDutyUpdate = partial_model(ActiveDutyCreate)
UnitAssignmentUpdate = partial_model(UnitAssignmentCreate)
DesignationUpdate = partial_model(DesignationCreate)
