"""
Unit tests for wizard/controller.py against an in-memory SectionGateway.

FakeGateway records every call and keeps created rows per section, so tests
can assert exactly what the wizard persisted (and what it did not).
"""
from __future__ import annotations

import itertools
from typing import Optional

import httpx
import pytest

from rids_backend.errors import InvalidState
from rids_backend.wizard.controller import WizardController
from rids_backend.wizard.drafts import parse_draft
from rids_backend.wizard.gateway import GatewayError
from rids_backend.wizard.machine import IncompleteStep, WizardClosed, WizardState
from rids_backend.wizard.steps import TOTAL_STEPS

RIDS_ID = "form-1"

PERSONNEL = {
    "section": "personnel",
    "rank": "2LT",
    "afpsn": "O-123456",
    "br_svc": "PA",
    "afpos_mos": "INF",
    "source_of_commission": "ROTC",
    "reservist_classification": "READY",
    "mobilization_center": "RCDG 1",
    "company": "ALPHA",
}
PERSONAL = {
    "section": "personal",
    "mobile_tel_nr": "09171234567",
    "birth_place": "Cebu City",
    "religion": "Catholic",
    "height_cm": 170,
    "weight_kg": 68,
    "marital_status": "Married",
    "sex": "Male",
}


class FakeGateway:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.rows: dict[str, dict[str, dict]] = {}
        self.form_fields: dict = {}
        self.submitted = False
        self.progress: Optional[dict] = None
        self.fail_on: Optional[str] = None
        self._ids = itertools.count(1)

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_on == operation:
            raise GatewayError(500, f"{operation} failed")

    async def save_form_fields(self, rids_form_id: str, fields: dict) -> dict:
        self.calls.append(("save_form_fields", fields))
        self._maybe_fail("save_form_fields")
        self.form_fields.update(fields)
        return dict(self.form_fields)

    async def list_entries(self, rids_form_id: str, section_name: str) -> list[dict]:
        self.calls.append(("list_entries", section_name))
        return list(self.rows.get(section_name, {}).values())

    async def create_entry(self, rids_form_id: str, section_name: str, values: dict) -> dict:
        self.calls.append(("create_entry", section_name, values))
        self._maybe_fail("create_entry")
        row = {"id": f"entry-{next(self._ids)}", "rids_form_id": rids_form_id, **values}
        self.rows.setdefault(section_name, {})[row["id"]] = row
        return row

    async def update_entry(self, rids_form_id: str, section_name: str, entry_id: str, values: dict) -> dict:
        self.calls.append(("update_entry", section_name, entry_id, values))
        self._maybe_fail("update_entry")
        self.rows[section_name][entry_id].update(values)
        return self.rows[section_name][entry_id]

    async def submit_form(self, rids_form_id: str) -> dict:
        self.calls.append(("submit_form",))
        self._maybe_fail("submit_form")
        self.submitted = True
        return {"id": rids_form_id, "status": "submitted"}

    async def save_progress(self, rids_form_id: str, progress: dict) -> dict:
        self._maybe_fail("save_progress")
        self.progress = progress
        return progress

    async def load_progress(self, rids_form_id: str) -> dict:
        return self.progress or {"current_step": 0, "submitted": False, "drafts": {}}

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def wizard(gateway: FakeGateway) -> WizardController:
    return WizardController(gateway, RIDS_ID)


async def _fill_required_steps(wizard: WizardController) -> None:
    await wizard.advance(parse_draft(PERSONNEL))
    await wizard.advance(parse_draft(PERSONAL))


# ---------------------------------------------------------------------------
# advance / retreat / submit
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_advancing_n_times_with_valid_drafts_submits_exactly_once(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    await _fill_required_steps(wizard)
    for _ in range(TOTAL_STEPS - 2):
        await wizard.advance()

    assert wizard.state.submitted is True
    assert gateway.names().count("submit_form") == 1
    assert gateway.submitted is True
    with pytest.raises(WizardClosed):
        await wizard.advance()
    assert gateway.names().count("submit_form") == 1


@pytest.mark.asyncio
async def test_retreat_at_step_zero_stays_and_persists_nothing(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    assert wizard.retreat() == WizardState(current_step=0)
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_retreat_does_not_persist(wizard: WizardController, gateway: FakeGateway) -> None:
    await wizard.advance(parse_draft(PERSONNEL))
    calls_before = list(gateway.calls)
    wizard.update_draft(parse_draft({**PERSONAL, "religion": "Islam"}))
    assert wizard.retreat().current_step == 0
    assert gateway.calls == calls_before


@pytest.mark.asyncio
async def test_required_step_with_missing_fields_stays_put(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    with pytest.raises(IncompleteStep) as excinfo:
        await wizard.advance(parse_draft({"section": "personnel", "rank": "2LT"}))
    assert "afpsn" in excinfo.value.missing
    assert wizard.state.current_step == 0
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_required_step_persists_form_fields_before_advancing(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    state = await wizard.advance(parse_draft(PERSONNEL))
    assert state.current_step == 1
    assert gateway.calls[0][0] == "save_form_fields"
    assert gateway.form_fields["afpsn"] == "O-123456"
    assert "section" not in gateway.form_fields


@pytest.mark.asyncio
async def test_storage_failure_keeps_step_and_allows_retry(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    gateway.fail_on = "save_form_fields"
    with pytest.raises(GatewayError):
        await wizard.advance(parse_draft(PERSONNEL))
    assert wizard.state.current_step == 0

    gateway.fail_on = None
    assert (await wizard.advance()).current_step == 1


@pytest.mark.asyncio
async def test_empty_optional_section_creates_no_rows(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    await _fill_required_steps(wizard)
    state = await wizard.advance()  # promotion history, nothing entered
    assert state.current_step == 3
    assert "create_entry" not in gateway.names()
    assert "update_entry" not in gateway.names()
    assert gateway.rows == {}


@pytest.mark.asyncio
async def test_blank_entry_rows_are_skipped(wizard: WizardController, gateway: FakeGateway) -> None:
    await _fill_required_steps(wizard)
    await wizard.advance(parse_draft({"section": "promotion_history", "entries": [{}, {"notes": ""}]}))
    assert gateway.rows == {}


@pytest.mark.asyncio
async def test_optional_entry_missing_required_field_blocks_advance(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    await _fill_required_steps(wizard)
    with pytest.raises(IncompleteStep) as excinfo:
        await wizard.advance(
            parse_draft({"section": "promotion_history", "entries": [{"rank": "1LT"}]})
        )
    assert "entries[0].entry_number" in excinfo.value.missing
    assert wizard.state.current_step == 2


@pytest.mark.asyncio
async def test_entries_are_created_then_updated_on_readvance(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    await _fill_required_steps(wizard)
    for _ in range(3):  # promotion history, training, awards
        await wizard.advance()
    dependents = parse_draft(
        {"section": "dependents", "entries": [{"relation": "Spouse", "full_name": "Jane Doe"}]}
    )
    await wizard.advance(dependents)

    created = gateway.rows["dependents"]
    assert len(created) == 1
    entry_id = next(iter(created))
    assert wizard.drafts["dependents"].entries[0].id == entry_id

    wizard.retreat()
    await wizard.advance()
    assert len(gateway.rows["dependents"]) == 1
    assert gateway.calls[-1][:3] == ("update_entry", "dependents", entry_id)
    assert gateway.names().count("create_entry") == 1


@pytest.mark.asyncio
async def test_partial_entry_failure_keeps_ids_of_rows_already_created(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    await _fill_required_steps(wizard)
    for _ in range(3):
        await wizard.advance()
    draft = parse_draft(
        {
            "section": "dependents",
            "entries": [
                {"relation": "Spouse", "full_name": "Jane"},
                {"relation": "Son", "full_name": "Ben"},
            ],
        }
    )
    original_create = gateway.create_entry

    async def create_once(rids_form_id, section_name, values):
        if gateway.names().count("create_entry") >= 1:
            gateway.calls.append(("create_entry", section_name, values))
            raise GatewayError(500, "constraint violation")
        return await original_create(rids_form_id, section_name, values)

    gateway.create_entry = create_once
    with pytest.raises(GatewayError):
        await wizard.advance(draft)
    assert wizard.state.current_step == 5
    assert wizard.drafts["dependents"].entries[0].id is not None
    assert wizard.drafts["dependents"].entries[1].id is None

    gateway.create_entry = original_create
    await wizard.advance()
    assert len(gateway.rows["dependents"]) == 2


@pytest.mark.asyncio
async def test_submit_failure_leaves_wizard_on_last_step(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    await _fill_required_steps(wizard)
    for _ in range(TOTAL_STEPS - 3):
        await wizard.advance()
    assert wizard.state.is_last

    gateway.fail_on = "submit_form"
    with pytest.raises(GatewayError):
        await wizard.advance(parse_draft({"section": "biometrics", "photo_url": "rids/form-1/photo.jpg"}))
    assert wizard.state.submitted is False
    assert wizard.state.is_last
    assert gateway.form_fields["photo_url"] == "rids/form-1/photo.jpg"

    gateway.fail_on = None
    assert (await wizard.submit()).submitted is True


@pytest.mark.asyncio
async def test_submit_before_last_step_is_refused(wizard: WizardController, gateway: FakeGateway) -> None:
    with pytest.raises(InvalidState, match="final step"):
        await wizard.submit()
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_progress_save_failure_does_not_undo_step(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    gateway.fail_on = "save_progress"
    assert (await wizard.advance(parse_draft(PERSONNEL))).current_step == 1


@pytest.mark.asyncio
async def test_unreachable_progress_store_does_not_fail_a_completed_step(
    wizard: WizardController, gateway: FakeGateway
) -> None:
    async def unreachable(rids_form_id, progress):
        raise httpx.ConnectError("connection refused")

    gateway.save_progress = unreachable
    state = await wizard.advance(parse_draft(PERSONNEL))
    assert state.current_step == 1
    assert wizard.state.current_step == 1
    assert gateway.form_fields["afpsn"] == "O-123456"


# ---------------------------------------------------------------------------
# Form wiring and resume
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_form_edits_flow_into_controller_drafts(wizard: WizardController) -> None:
    form = wizard.form_for("personnel")
    for name, value in PERSONNEL.items():
        if name != "section":
            form.set_field(name, value)
    assert wizard.drafts["personnel"].company == "ALPHA"
    assert (await wizard.advance()).current_step == 1


@pytest.mark.asyncio
async def test_resume_restores_step_drafts_and_saved_entries(gateway: FakeGateway) -> None:
    first = WizardController(gateway, RIDS_ID)
    await _fill_required_steps(first)
    await first.advance(
        parse_draft(
            {
                "section": "promotion_history",
                "entries": [{"entry_number": 1, "rank": "2LT", "date_of_rank": "2015-06-01", "authority": "GO"}],
            }
        )
    )
    first.update_draft(parse_draft({"section": "military_training", "entries": [{"training_name": "BCMT"}]}))
    await gateway.save_progress(RIDS_ID, first.progress())

    resumed = await WizardController.resume(gateway, RIDS_ID)
    assert resumed.state.current_step == 3
    assert resumed.drafts["personnel"].company == "ALPHA"
    assert resumed.drafts["military_training"].entries[0].training_name == "BCMT"
    promotions = resumed.drafts["promotion_history"].entries
    assert len(promotions) == 1
    assert promotions[0].id is not None
    assert promotions[0].rank == "2LT"


@pytest.mark.asyncio
async def test_removing_a_saved_entry_only_changes_the_draft(gateway: FakeGateway) -> None:
    first = WizardController(gateway, RIDS_ID)
    await _fill_required_steps(first)
    for _ in range(3):
        await first.advance()
    await first.advance(
        parse_draft({"section": "dependents", "entries": [{"relation": "Spouse", "full_name": "Jane"}]})
    )
    first.form_for("dependents").remove_entry(0)
    assert first.drafts["dependents"].entries == []
    await gateway.save_progress(RIDS_ID, first.progress())

    assert len(gateway.rows["dependents"]) == 1
    resumed = await WizardController.resume(gateway, RIDS_ID)
    restored = resumed.drafts["dependents"].entries
    assert [entry.full_name for entry in restored] == ["Jane"]
    assert restored[0].id is not None
