"""
drafts.py — Wizard draft payloads as a tagged union.

Each section has one draft model carrying a `section` literal tag:
  - form sections reuse the section payload (PersonnelInfo, ...) plus the tag
  - entries sections hold `entries: list[<Section>Entry]`, where an entry is the
    section's partial update payload plus an optional `id` (set once saved)

SectionDraft is discriminated on `section`, so stored progress and request
bodies parse straight back into the right model.
"""
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, create_model

from rids_backend.rids.schemas import BiometricsInfo, PersonalInfo, PersonnelInfo
from rids_backend.sections import schemas
from rids_backend.wizard.steps import WizardStep


def entry_draft_model(update_schema: type[BaseModel]) -> type[BaseModel]:
    """Partial entry payload plus the row id assigned by storage."""
    return create_model(
        update_schema.__name__.replace("Update", "Entry"),
        __base__=update_schema,
        id=(Optional[str], None),
    )


PromotionHistoryEntry = entry_draft_model(schemas.PromotionHistoryUpdate)
MilitaryTrainingEntry = entry_draft_model(schemas.MilitaryTrainingUpdate)
AwardEntry = entry_draft_model(schemas.AwardUpdate)
DependentEntry = entry_draft_model(schemas.DependentUpdate)
EducationEntry = entry_draft_model(schemas.EducationUpdate)
ActiveDutyEntry = entry_draft_model(schemas.ActiveDutyUpdate)
UnitAssignmentEntry = entry_draft_model(schemas.UnitAssignmentUpdate)
DesignationEntry = entry_draft_model(schemas.DesignationUpdate)


# ---------------------------------------------------------------------------
# Form-section drafts
# ---------------------------------------------------------------------------

class PersonnelDraft(PersonnelInfo):
    section: Literal["personnel"] = "personnel"


class PersonalDraft(PersonalInfo):
    section: Literal["personal"] = "personal"


class BiometricsDraft(BiometricsInfo):
    section: Literal["biometrics"] = "biometrics"


# ---------------------------------------------------------------------------
# Entries-section drafts
# ---------------------------------------------------------------------------

class EntriesDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entries: List[Any] = Field(default_factory=list)


class PromotionHistoryDraft(EntriesDraft):
    section: Literal["promotion_history"] = "promotion_history"
    entries: List[PromotionHistoryEntry] = Field(default_factory=list)


class MilitaryTrainingDraft(EntriesDraft):
    section: Literal["military_training"] = "military_training"
    entries: List[MilitaryTrainingEntry] = Field(default_factory=list)


class AwardsDraft(EntriesDraft):
    section: Literal["awards"] = "awards"
    entries: List[AwardEntry] = Field(default_factory=list)


class DependentsDraft(EntriesDraft):
    section: Literal["dependents"] = "dependents"
    entries: List[DependentEntry] = Field(default_factory=list)


class EducationDraft(EntriesDraft):
    section: Literal["education"] = "education"
    entries: List[EducationEntry] = Field(default_factory=list)


class ActiveDutyDraft(EntriesDraft):
    section: Literal["active_duty"] = "active_duty"
    entries: List[ActiveDutyEntry] = Field(default_factory=list)


class UnitAssignmentsDraft(EntriesDraft):
    section: Literal["unit_assignments"] = "unit_assignments"
    entries: List[UnitAssignmentEntry] = Field(default_factory=list)


class DesignationsDraft(EntriesDraft):
    section: Literal["designations"] = "designations"
    entries: List[DesignationEntry] = Field(default_factory=list)


SectionDraft = Annotated[
    Union[
        PersonnelDraft,
        PersonalDraft,
        PromotionHistoryDraft,
        MilitaryTrainingDraft,
        AwardsDraft,
        DependentsDraft,
        EducationDraft,
        ActiveDutyDraft,
        UnitAssignmentsDraft,
        DesignationsDraft,
        BiometricsDraft,
    ],
    Field(discriminator="section"),
]

DRAFT_TYPES: dict[str, type[BaseModel]] = {
    "personnel": PersonnelDraft,
    "personal": PersonalDraft,
    "promotion_history": PromotionHistoryDraft,
    "military_training": MilitaryTrainingDraft,
    "awards": AwardsDraft,
    "dependents": DependentsDraft,
    "education": EducationDraft,
    "active_duty": ActiveDutyDraft,
    "unit_assignments": UnitAssignmentsDraft,
    "designations": DesignationsDraft,
    "biometrics": BiometricsDraft,
}

_draft_adapter: TypeAdapter = TypeAdapter(SectionDraft)


def parse_draft(data: Any) -> BaseModel:
    """Validate a raw dict (with its `section` tag) into the matching draft model."""
    return _draft_adapter.validate_python(data)


def empty_draft(section_key: str) -> BaseModel:
    return DRAFT_TYPES[section_key]()


# ---------------------------------------------------------------------------
# Inspection helpers
# ---------------------------------------------------------------------------

def _filled(value: Any) -> bool:
    return value is not None and value != [] and value != ""


def entry_is_blank(entry: BaseModel) -> bool:
    """An unsaved entry row with nothing typed into it."""
    return entry.id is None and not any(
        _filled(value) for name, value in entry if name != "id"
    )


def form_fields(draft: BaseModel) -> dict:
    """JSON-ready form-section fields the user has touched (tag excluded)."""
    return draft.model_dump(mode="json", exclude={"section"}, exclude_unset=True)


def is_empty(draft: BaseModel) -> bool:
    if isinstance(draft, EntriesDraft):
        return all(entry_is_blank(entry) for entry in draft.entries)
    return not any(_filled(value) for value in form_fields(draft).values())


def missing_fields(step: WizardStep, draft: BaseModel) -> list[str]:
    """
    Required fields still empty in a draft.

    Form steps report field names; entries steps report 'entries[i].field'
    for each non-blank entry. A blank optional step reports nothing.
    """
    if isinstance(draft, EntriesDraft):
        required = step.entry_required_fields
        missing = []
        for index, entry in enumerate(draft.entries):
            if entry_is_blank(entry):
                continue
            for name in required:
                if not _filled(getattr(entry, name)):
                    missing.append(f"entries[{index}].{name}")
        return missing
    return [name for name in step.required_fields if not _filled(getattr(draft, name))]
