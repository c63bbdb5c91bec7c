"""Unit tests for wizard/forms.py and the draft helpers in wizard/drafts.py."""
from datetime import date

import pytest
from pydantic import ValidationError

from rids_backend.wizard.drafts import (
    DependentsDraft,
    PersonnelDraft,
    is_empty,
    missing_fields,
    parse_draft,
)
from rids_backend.wizard.forms import SectionForm
from rids_backend.wizard.steps import WIZARD_STEPS

PERSONNEL_STEP = WIZARD_STEPS[0]
DEPENDENTS_STEP = next(s for s in WIZARD_STEPS if s.key == "dependents")


def test_every_edit_reports_the_full_draft() -> None:
    seen = []
    form = SectionForm("personnel", initial={"rank": "2LT"}, on_change=seen.append)

    form.set_field("afpsn", "O-1")
    form.set_field("company", "ALPHA")

    assert len(seen) == 2
    assert isinstance(seen[-1], PersonnelDraft)
    assert seen[-1].rank == "2LT"
    assert seen[-1].afpsn == "O-1"
    assert seen[-1].company == "ALPHA"
    assert seen[0].company is None


def test_invalid_value_leaves_draft_unchanged_and_skips_callback() -> None:
    seen = []
    form = SectionForm("personnel", on_change=seen.append)
    with pytest.raises(ValidationError):
        form.set_field("company", "ECHO")
    assert seen == []
    assert form.draft.company is None


def test_unknown_field_and_section_are_rejected() -> None:
    with pytest.raises(KeyError):
        SectionForm("hobbies")
    with pytest.raises(KeyError):
        SectionForm("personal").set_field("nickname", "x")
    with pytest.raises(TypeError):
        SectionForm("dependents").set_field("relation", "Spouse")


def test_entry_editing_reports_whole_entry_list() -> None:
    seen = []
    form = SectionForm("dependents", on_change=seen.append)
    first = form.add_entry({"relation": "Spouse"})
    form.set_entry_field(first, "full_name", "Jane Doe")
    form.set_entry_field(first, "birthdate", "1990-01-01")
    second = form.add_entry()
    form.remove_entry(second)

    draft = seen[-1]
    assert isinstance(draft, DependentsDraft)
    assert len(draft.entries) == 1
    assert draft.entries[0].full_name == "Jane Doe"
    assert draft.entries[0].birthdate == date(1990, 1, 1)


def test_draft_property_is_a_copy() -> None:
    form = SectionForm("biometrics", initial={"photo_url": "rids/1/photo.jpg"})
    copy = form.draft
    copy.photo_url = "changed"
    assert form.draft.photo_url == "rids/1/photo.jpg"


def test_parse_draft_dispatches_on_section_tag() -> None:
    draft = parse_draft({"section": "dependents", "entries": [{"relation": "Son", "full_name": "Ben"}]})
    assert isinstance(draft, DependentsDraft)
    with pytest.raises(ValidationError):
        parse_draft({"section": "unknown"})


def test_missing_fields_for_required_form_step() -> None:
    draft = PersonnelDraft(rank="2LT", afpsn="O-1")
    missing = missing_fields(PERSONNEL_STEP, draft)
    assert "rank" not in missing
    assert "company" in missing
    assert "mobilization_center" in missing


def test_missing_fields_per_entry_ignores_blank_rows() -> None:
    draft = parse_draft(
        {"section": "dependents", "entries": [{"relation": "Son"}, {}, {"relation": "Spouse", "full_name": "J"}]}
    )
    assert missing_fields(DEPENDENTS_STEP, draft) == ["entries[0].full_name"]


def test_is_empty() -> None:
    assert is_empty(DependentsDraft())
    assert is_empty(parse_draft({"section": "dependents", "entries": [{}, {"contact_info": ""}]}))
    assert not is_empty(parse_draft({"section": "dependents", "entries": [{"full_name": "x"}]}))
    assert is_empty(PersonnelDraft())
    assert not is_empty(PersonnelDraft(rank="2LT"))


def test_app_imports_and_every_section_tag_parses() -> None:
    from rids_backend.main import app
    from rids_backend.wizard.drafts import DRAFT_TYPES

    assert app.title == "RIDS API"
    for key, model in DRAFT_TYPES.items():
        assert isinstance(parse_draft({"section": key}), model)


def test_blank_strings_become_none_but_tag_is_kept() -> None:
    draft = parse_draft({"section": "personal", "religion": "  ", "birth_place": "Cebu"})
    assert draft.section == "personal"
    assert draft.religion is None
    assert draft.birth_place == "Cebu"

    entries = parse_draft({"section": "awards", "entries": [{"award_name": "", "citation": "For valor"}]})
    assert entries.entries[0].award_name is None
    assert entries.entries[0].citation == "For valor"
