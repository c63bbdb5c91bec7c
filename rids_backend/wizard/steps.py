"""
steps.py — The RIDS wizard's ordered step catalogue.

Two kinds of step:
  form     single-valued section stored on the parent rids_forms row
           (saved with PUT /api/staff/rids/{id})
  entries  multi-valued section stored as child rows
           (saved through the section entry endpoints)

Required steps cannot be left until their required fields are filled; optional
steps may be passed with an empty draft.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from rids_backend.sections.registry import SectionSpec, get_section_by_key

StepKind = Literal["form", "entries"]


@dataclass(frozen=True)
class WizardStep:
    key: str
    title: str
    kind: StepKind
    required: bool = False
    required_fields: tuple[str, ...] = ()

    @property
    def section(self) -> Optional[SectionSpec]:
        """Entry-section catalogue record; None for form steps."""
        return get_section_by_key(self.key) if self.kind == "entries" else None

    @property
    def entry_required_fields(self) -> tuple[str, ...]:
        """Fields every entry of an entries step must carry before it is saved."""
        spec = self.section
        if spec is None:
            return ()
        return tuple(
            name for name, info in spec.create_schema.model_fields.items() if info.is_required()
        )


WIZARD_STEPS: tuple[WizardStep, ...] = (
    WizardStep(
        key="personnel",
        title="Personnel Information",
        kind="form",
        required=True,
        required_fields=(
            "rank",
            "afpsn",
            "br_svc",
            "afpos_mos",
            "source_of_commission",
            "reservist_classification",
            "mobilization_center",
            "company",
        ),
    ),
    WizardStep(
        key="personal",
        title="Personal Information",
        kind="form",
        required=True,
        required_fields=(
            "mobile_tel_nr",
            "birth_place",
            "religion",
            "height_cm",
            "weight_kg",
            "marital_status",
            "sex",
        ),
    ),
    WizardStep(key="promotion_history", title="Promotion/Demotion History", kind="entries"),
    WizardStep(key="military_training", title="Military Training/Seminar/Schooling", kind="entries"),
    WizardStep(key="awards", title="Awards & Decorations", kind="entries"),
    WizardStep(key="dependents", title="Dependents", kind="entries"),
    WizardStep(key="education", title="Educational Background", kind="entries"),
    WizardStep(key="active_duty", title="CAD/OJT/ADT", kind="entries"),
    WizardStep(key="unit_assignments", title="Unit Assignments", kind="entries"),
    WizardStep(key="designations", title="Designations", kind="entries"),
    WizardStep(key="biometrics", title="Biometrics", kind="form"),
)

STEP_KEYS: tuple[str, ...] = tuple(step.key for step in WIZARD_STEPS)
TOTAL_STEPS = len(WIZARD_STEPS)


def step_at(index: int) -> WizardStep:
    return WIZARD_STEPS[index]
