"""
registry.py — Catalogue of multi-valued RIDS sections.

Every section shares one route/store implementation; this table supplies the
per-section differences: storage model, payload schemas, list ordering, URL
name and the words used in response messages.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel

from rids_backend.errors import NotFound
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
from rids_backend.sections import schemas


@dataclass(frozen=True)
class SectionSpec:
    key: str                          # snake_case key, used in full-form payloads and wizard drafts
    url_name: str                     # path segment under /sections/
    label: str                        # singular noun for response messages
    model: type
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    order_by: tuple[tuple[str, bool], ...] = (("created_at", False),)   # (column, descending)
    computed: tuple[str, ...] = field(default_factory=tuple)           # read-only ORM properties to serialise


SECTION_SPECS: tuple[SectionSpec, ...] = (
    SectionSpec(
        key="promotion_history",
        url_name="promotion-history",
        label="Promotion history",
        model=PromotionHistoryORM,
        create_schema=schemas.PromotionHistoryCreate,
        update_schema=schemas.PromotionHistoryUpdate,
        order_by=(("entry_number", False),),
    ),
    SectionSpec(
        key="military_training",
        url_name="military-training",
        label="Military training",
        model=MilitaryTrainingORM,
        create_schema=schemas.MilitaryTrainingCreate,
        update_schema=schemas.MilitaryTrainingUpdate,
        order_by=(("date_graduated", True),),
    ),
    SectionSpec(
        key="awards",
        url_name="awards",
        label="Award",
        model=AwardORM,
        create_schema=schemas.AwardCreate,
        update_schema=schemas.AwardUpdate,
        order_by=(("date_awarded", True),),
    ),
    SectionSpec(
        key="dependents",
        url_name="dependents",
        label="Dependent",
        model=DependentORM,
        create_schema=schemas.DependentCreate,
        update_schema=schemas.DependentUpdate,
    ),
    SectionSpec(
        key="education",
        url_name="education",
        label="Education",
        model=EducationORM,
        create_schema=schemas.EducationCreate,
        update_schema=schemas.EducationUpdate,
        order_by=(("date_graduated", True),),
    ),
    SectionSpec(
        key="active_duty",
        url_name="active-duty",
        label="Active duty",
        model=ActiveDutyORM,
        create_schema=schemas.ActiveDutyCreate,
        update_schema=schemas.ActiveDutyUpdate,
        order_by=(("date_start", True),),
        computed=("days_served",),
    ),
    SectionSpec(
        key="unit_assignments",
        url_name="unit-assignments",
        label="Unit assignment",
        model=UnitAssignmentORM,
        create_schema=schemas.UnitAssignmentCreate,
        update_schema=schemas.UnitAssignmentUpdate,
        order_by=(("date_from", True),),
    ),
    SectionSpec(
        key="designations",
        url_name="designations",
        label="Designation",
        model=DesignationORM,
        create_schema=schemas.DesignationCreate,
        update_schema=schemas.DesignationUpdate,
        order_by=(("date_from", True),),
    ),
)

_BY_URL_NAME = {spec.url_name: spec for spec in SECTION_SPECS}
_BY_KEY = {spec.key: spec for spec in SECTION_SPECS}


def get_section(url_name: str) -> SectionSpec:
    """Look up a section by its URL segment; unknown names are a 404."""
    try:
        return _BY_URL_NAME[url_name]
    except KeyError:
        raise NotFound(f"Unknown RIDS section '{url_name}'") from None


def get_section_by_key(key: str) -> SectionSpec:
    try:
        return _BY_KEY[key]
    except KeyError:
        raise NotFound(f"Unknown RIDS section '{key}'") from None
