"""
forms.py — Per-section form state for the wizard.

A SectionForm owns the local draft of one section. It is seeded with optional
initial data and reports every edit through on_change with the *full* current
draft (never just the changed field). It has no other side effects: saving is
the controller's job.

Removing an entry is local to the draft. An entry that was already saved (it
carries an id) stays in storage, and resume() lists it again once the
section's draft is empty. Deleting it is a separate call to the section
DELETE endpoint.

    form = SectionForm("dependents", on_change=controller.update_draft)
    index = form.add_entry()
    form.set_entry_field(index, "relation", "Spouse")
"""
import logging
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel

from rids_backend.wizard.drafts import DRAFT_TYPES, EntriesDraft, empty_draft, parse_draft

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[BaseModel], None]


class SectionForm:
    def __init__(
        self,
        section_key: str,
        initial: Union[BaseModel, dict, None] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        if section_key not in DRAFT_TYPES:
            raise KeyError(f"Unknown wizard section '{section_key}'")
        self.section_key = section_key
        self._on_change = on_change
        if initial is None:
            self._draft = empty_draft(section_key)
        elif isinstance(initial, BaseModel):
            self._draft = initial.model_copy(deep=True)
        else:
            self._draft = parse_draft({**initial, "section": section_key})

    @property
    def draft(self) -> BaseModel:
        return self._draft.model_copy(deep=True)

    @property
    def has_entries(self) -> bool:
        return isinstance(self._draft, EntriesDraft)

    def _replace(self, data: dict) -> None:
        self._draft = parse_draft(data)
        if self._on_change is not None:
            self._on_change(self.draft)

    def _dump(self) -> dict:
        # exclude_unset keeps "never touched" apart from "cleared" for form sections
        return self._draft.model_dump(exclude_unset=True) | {"section": self.section_key}

    # -- form sections -------------------------------------------------------

    def set_field(self, name: str, value: Any) -> None:
        if self.has_entries:
            raise TypeError(f"{self.section_key} holds entries; use set_entry_field")
        if name == "section" or name not in type(self._draft).model_fields:
            raise KeyError(f"{self.section_key} has no field '{name}'")
        self._replace({**self._dump(), name: value})

    # -- entries sections ----------------------------------------------------

    def _entries(self) -> list[dict]:
        if not self.has_entries:
            raise TypeError(f"{self.section_key} is a single-record section; use set_field")
        return [entry.model_dump(exclude_unset=True) for entry in self._draft.entries]

    def add_entry(self, values: Optional[dict] = None) -> int:
        """Append an unsaved entry; returns its index."""
        entries = self._entries()
        entries.append(dict(values or {}))
        self._replace({"section": self.section_key, "entries": entries})
        return len(entries) - 1

    def set_entry_field(self, index: int, name: str, value: Any) -> None:
        entries = self._entries()
        entry_model = type(self._draft.entries[index])
        if name not in entry_model.model_fields:
            raise KeyError(f"{self.section_key} entries have no field '{name}'")
        entries[index] = {**entries[index], name: value}
        self._replace({"section": self.section_key, "entries": entries})

    def remove_entry(self, index: int) -> None:
        """
        Drop an entry from the draft only. A saved entry (one with an id) stays
        in storage and is listed again by resume() if the draft ends up empty.
        """
        entries = self._entries()
        removed = entries.pop(index)
        if removed.get("id"):
            logger.debug("Removed saved %s entry id=%s from draft", self.section_key, removed["id"])
        self._replace({"section": self.section_key, "entries": entries})
