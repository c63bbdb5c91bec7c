"""
controller.py — WizardController: the RIDS intake wizard's driver.

Holds the step pointer (a machine.WizardState) and one draft per section, and
moves between steps only after the current step's draft has been persisted
through a SectionGateway:

  advance()  validate → persist current draft → step + 1
             (on the last step this is submit())
  retreat()  step - 1, nothing persisted, no-op at step 0
  submit()   persist the final draft → PUT .../submit → `submitted`

Any failure leaves the step pointer where it was and propagates, so the
caller can show the error and retry.

Entry sections are create-or-update: entries without an id are created, the
returned id is written back into the draft, and entries with an id are
updated. Re-advancing over a step therefore never duplicates rows.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from rids_backend.errors import InvalidState
from rids_backend.wizard import machine
from rids_backend.wizard.drafts import (
    EntriesDraft,
    empty_draft,
    entry_is_blank,
    form_fields,
    is_empty,
    missing_fields,
    parse_draft,
)
from rids_backend.wizard.forms import SectionForm
from rids_backend.wizard.gateway import GatewayError, SectionGateway
from rids_backend.wizard.machine import IncompleteStep, WizardState
from rids_backend.wizard.steps import WIZARD_STEPS, WizardStep

logger = logging.getLogger(__name__)


class WizardController:
    def __init__(
        self,
        gateway: SectionGateway,
        rids_form_id: str,
        state: Optional[WizardState] = None,
        drafts: Optional[dict[str, BaseModel]] = None,
    ) -> None:
        self.gateway = gateway
        self.rids_form_id = rids_form_id
        self.state = state or WizardState()
        # one draft per section, created up front
        self.drafts: dict[str, BaseModel] = {step.key: empty_draft(step.key) for step in WIZARD_STEPS}
        if drafts:
            self.drafts.update(drafts)

    # ------------------------------------------------------------------
    # Draft handling
    # ------------------------------------------------------------------

    @property
    def current_step(self) -> WizardStep:
        return WIZARD_STEPS[self.state.current_step]

    def update_draft(self, draft: BaseModel) -> None:
        """SectionForm change callback: replace the section's draft wholesale."""
        self.drafts[draft.section] = draft

    def form_for(self, section_key: str) -> SectionForm:
        """A SectionForm seeded with the section's draft and wired back to this controller."""
        return SectionForm(section_key, initial=self.drafts[section_key], on_change=self.update_draft)

    def progress(self) -> dict:
        """JSON-ready snapshot for save_progress; untouched fields are left out."""
        return {
            "current_step": self.state.current_step,
            "submitted": self.state.submitted,
            "drafts": {
                key: {**draft.model_dump(mode="json", exclude_unset=True), "section": key}
                for key, draft in self.drafts.items()
            },
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def advance(self, draft: Optional[BaseModel] = None) -> WizardState:
        if self.state.submitted:
            raise machine.WizardClosed()
        if draft is not None:
            self.update_draft(draft)
        if self.state.is_last:
            return await self.submit()

        step = self.current_step
        await self._persist(step)
        self.state = machine.advance(self.state)
        logger.info("Wizard rids_form_id=%s advanced to step=%d", self.rids_form_id, self.state.current_step)
        await self._save_progress()
        return self.state

    def retreat(self) -> WizardState:
        self.state = machine.retreat(self.state)
        return self.state

    async def submit(self) -> WizardState:
        if self.state.submitted:
            raise machine.WizardClosed()
        if not self.state.is_last:
            raise InvalidState("RIDS can only be submitted from the final step")

        await self._persist(self.current_step)
        await self.gateway.submit_form(self.rids_form_id)
        self.state = machine.advance(self.state)
        logger.info("Wizard rids_form_id=%s submitted", self.rids_form_id)
        await self._save_progress()
        return self.state

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _persist(self, step: WizardStep) -> None:
        draft = self.drafts[step.key]
        if not step.required and is_empty(draft):
            return
        missing = missing_fields(step, draft)
        if missing:
            raise IncompleteStep(step.key, missing)

        if isinstance(draft, EntriesDraft):
            await self._persist_entries(step, draft)
        else:
            fields = form_fields(draft)
            if fields:
                await self.gateway.save_form_fields(self.rids_form_id, fields)

    async def _persist_entries(self, step: WizardStep, draft: EntriesDraft) -> None:
        section_name = step.section.url_name
        entries = list(draft.entries)
        for index, entry in enumerate(entries):
            if entry_is_blank(entry):
                continue
            values = entry.model_dump(mode="json", exclude={"id"}, exclude_unset=True)
            if entry.id:
                await self.gateway.update_entry(self.rids_form_id, section_name, entry.id, values)
            else:
                created = await self.gateway.create_entry(self.rids_form_id, section_name, values)
                entries[index] = entry.model_copy(update={"id": created["id"]})
                # written back after every create so a failure later in the list
                # does not duplicate the rows already saved
                self.drafts[step.key] = draft.model_copy(update={"entries": list(entries)})

    async def _save_progress(self) -> None:
        """Best effort: losing resume data must not undo a completed step."""
        try:
            await self.gateway.save_progress(self.rids_form_id, self.progress())
        except GatewayError as exc:
            logger.warning(
                "Could not save wizard progress rids_form_id=%s status=%d",
                self.rids_form_id,
                exc.status_code,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Could not save wizard progress rids_form_id=%s error=%s",
                self.rids_form_id,
                type(exc).__name__,
            )

    # ------------------------------------------------------------------
    # Resume
    # ------------------------------------------------------------------

    @classmethod
    async def resume(cls, gateway: SectionGateway, rids_form_id: str) -> "WizardController":
        """
        Rebuild a controller from saved progress. Entry sections without an
        unsaved draft are re-listed from storage, so previously persisted
        entries show up (with their ids) and are never re-created.
        """
        progress = await gateway.load_progress(rids_form_id) or {}
        state = WizardState(
            current_step=progress.get("current_step", 0),
            submitted=progress.get("submitted", False),
        )
        drafts = {
            key: parse_draft({**data, "section": key})
            for key, data in (progress.get("drafts") or {}).items()
        }
        for step in WIZARD_STEPS:
            if step.kind != "entries":
                continue
            draft = drafts.get(step.key)
            if draft is not None and not is_empty(draft):
                continue
            rows = await gateway.list_entries(rids_form_id, step.section.url_name)
            if rows:
                drafts[step.key] = parse_draft({"section": step.key, "entries": rows})
        logger.info("Wizard rids_form_id=%s resumed at step=%d", rids_form_id, state.current_step)
        return cls(gateway, rids_form_id, state=state, drafts=drafts)
