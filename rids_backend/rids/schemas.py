"""
schemas.py — RIDS form Pydantic v2 data contracts.

Defines:
  - value sets for the single-valued sections (company, blood type, ...)
  - PersonnelInfo   (Section 1)
  - PersonalInfo    (Section 2)
  - BiometricsInfo  (Section 11 — storage paths only)
  - RidsFormCreate / RidsFormUpdate  (POST / PUT /api/staff/rids bodies)
  - RejectRequest, ChangeStatusRequest  (lifecycle bodies)

All section fields are Optional at the API level: the wizard saves partial
drafts. Required-ness is a wizard concern (wizard/steps.py), not a storage one.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Value sets
# ---------------------------------------------------------------------------

RidsStatus = Literal["draft", "submitted", "approved", "rejected"]
RIDS_STATUSES: tuple[str, ...] = ("draft", "submitted", "approved", "rejected")

AfposCategory = Literal["INF", "CAV", "FA", "SC", "QMS", "MI", "AGS", "FS", "RES", "GSC", "MNSA"]
SourceOfCommission = Literal[
    "MNSA", "ELECTED", "PRES_APPOINTEE", "DEGREE_HOLDER", "MS-43", "POTC",
    "CBT_COMMISSION", "EX-AFP", "ROTC", "CMT", "BCMT", "SBCMT", "CAA_CAFGU", "MOT_PAARU",
]
ReservistClassification = Literal["READY", "STANDBY", "RETIRED"]
Company = Literal["ALPHA", "BRAVO", "CHARLIE", "DELTA", "HQ", "SIGNAL", "FAB"]
COMPANIES: tuple[str, ...] = ("ALPHA", "BRAVO", "CHARLIE", "DELTA", "HQ", "SIGNAL", "FAB")
BloodType = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
MaritalStatus = Literal["Single", "Married", "Widow", "Separated"]
Sex = Literal["Male", "Female"]


class FormSectionPayload(BaseModel):
    """Base for single-valued section payloads; blank strings become None."""
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        # the wizard's `section` tag is a union discriminator and is left alone
        if not isinstance(data, dict):
            return data
        return {
            key: None if key != "section" and isinstance(value, str) and not value.strip() else value
            for key, value in data.items()
        }


# ---------------------------------------------------------------------------
# Section 1 — personnel information
# ---------------------------------------------------------------------------

class PersonnelInfo(FormSectionPayload):
    rank: Optional[str] = None
    afpsn: Optional[str] = None
    br_svc: Optional[str] = None
    afpos_mos: Optional[AfposCategory] = None
    source_of_commission: Optional[SourceOfCommission] = None
    initial_rank: Optional[str] = None
    date_of_commission: Optional[date] = None
    commission_authority: Optional[str] = None
    reservist_classification: Optional[ReservistClassification] = None
    mobilization_center: Optional[str] = None
    designation: Optional[str] = None
    squad_team_section: Optional[str] = None
    platoon: Optional[str] = None
    company: Optional[Company] = None
    battalion_brigade_division: Optional[str] = None
    combat_shoes_size: Optional[str] = None
    cap_size_cm: Optional[float] = Field(default=None, gt=0)
    bda_size: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 2 — personal information
# ---------------------------------------------------------------------------

class PersonalInfo(FormSectionPayload):
    # Employment
    present_occupation: Optional[str] = None
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    office_tel_nr: Optional[str] = None
    # Residence
    home_address_street: Optional[str] = None
    home_address_city: Optional[str] = None
    home_address_province: Optional[str] = None
    home_address_zip: Optional[str] = None
    res_tel_nr: Optional[str] = None
    mobile_tel_nr: Optional[str] = None
    # Personal details
    birthdate: Optional[date] = None
    birth_place: Optional[str] = None
    religion: Optional[str] = None
    blood_type: Optional[BloodType] = None
    # Government ids
    tin: Optional[str] = None
    sss_number: Optional[str] = None
    philhealth_number: Optional[str] = None
    # Physical
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    marital_status: Optional[MaritalStatus] = None
    sex: Optional[Sex] = None
    # Digital presence / additional
    fb_account: Optional[str] = None
    email_address: Optional[str] = None
    special_skills: Optional[str] = None
    languages_spoken: Optional[str] = None


# ---------------------------------------------------------------------------
# Section 11 — biometrics
# ---------------------------------------------------------------------------

class BiometricsInfo(FormSectionPayload):
    photo_url: Optional[str] = None
    thumbmark_url: Optional[str] = None
    signature_url: Optional[str] = None


PERSONNEL_FIELDS: frozenset[str] = frozenset(PersonnelInfo.model_fields)
PERSONAL_FIELDS: frozenset[str] = frozenset(PersonalInfo.model_fields)
BIOMETRIC_FIELDS: frozenset[str] = frozenset(BiometricsInfo.model_fields)

# Section 1 identity fields cannot change once a form left draft/rejected
CORE_IDENTITY_FIELDS = PERSONNEL_FIELDS


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class RidsFormUpdate(PersonnelInfo, PersonalInfo, BiometricsInfo):
    """PUT /api/staff/rids/{id} — only fields present in the body are written."""


class RidsFormCreate(RidsFormUpdate):
    reservist_id: str = Field(..., min_length=1)


class RejectRequest(BaseModel):
    rejection_reason: str = ""


class ChangeStatusRequest(BaseModel):
    new_status: str = ""
    reason: str = ""
    notes: Optional[str] = None
